from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one scheduled instance of taking attendance for a subject."""

    session_id: int
    subject_id: int
    session_date: date
    session_time: Optional[time]
    is_visible: bool
    qr_token: Optional[str]
    qr_expires_at: Optional[datetime]
    late_after_minutes: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def starts_at(self) -> datetime:
        # no clock time -> start of day
        return datetime.combine(self.session_date, self.session_time or time.min)

    @property
    def late_threshold(self) -> datetime:
        return self.starts_at + timedelta(minutes=int(self.late_after_minutes))


@dataclass(frozen=True)
class RosterEntry:
    student_id: int
    status: AttendanceStatus = AttendanceStatus.ABSENT
