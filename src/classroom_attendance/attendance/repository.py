from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, StudentSessionRow, UpsertOutcome


class AttendanceLedger(Protocol):
    def upsert_checkin(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        token: Optional[str] = None,
    ) -> Optional[UpsertOutcome]:
        """Insert, or upgrade an 'absent' row, as one atomic conditional write.

        present/late/excused rows are left untouched (written=False). When token
        is given, the write only happens if the session still holds exactly that
        token at write time; otherwise returns None.
        """

        raise NotImplementedError

    def get(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_by_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_student(self, student_id: int, *, subject_id: Optional[int] = None) -> Sequence[StudentSessionRow]:
        """Every session of the student's enrolled subjects (or one subject), newest first."""

        raise NotImplementedError

    def count_by_session(self, subject_id: int) -> Dict[int, Dict[AttendanceStatus, int]]:
        raise NotImplementedError

    def count_for_subject(self, subject_id: int) -> Dict[AttendanceStatus, int]:
        raise NotImplementedError
