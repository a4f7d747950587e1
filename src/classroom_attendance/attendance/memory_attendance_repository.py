from __future__ import annotations

from collections import Counter
from datetime import time
from typing import Dict, Optional, Sequence

from ..core.enums import UPGRADABLE_STATUSES, AttendanceStatus
from ..database.memory_base import MemoryDatabase
from .model import AttendanceRecord, StudentSessionRow, UpsertOutcome
from .repository import AttendanceLedger


def _to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        session_id=row["session_id"],
        student_id=row["student_id"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class MemoryAttendanceRepository(AttendanceLedger):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def upsert_checkin(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        token: Optional[str] = None,
    ) -> Optional[UpsertOutcome]:
        key = (int(session_id), int(student_id))
        with self._db.transaction() as db:
            session = db.sessions.get(key[0])
            if session is None:
                return None
            if token is not None and session["qr_token"] != token:
                return None

            now = db.now()
            row = db.records.get(key)
            if row is None:
                db.records[key] = {
                    "session_id": key[0],
                    "student_id": key[1],
                    "status": status,
                    "created_at": now,
                    "updated_at": now,
                }
                return UpsertOutcome(written=True, effective_status=status)

            if row["status"] in UPGRADABLE_STATUSES:
                row["status"] = status
                row["updated_at"] = now
                return UpsertOutcome(written=True, effective_status=status)

            return UpsertOutcome(written=False, effective_status=row["status"])

    def get(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with self._db.transaction() as db:
            row = db.records.get((int(session_id), int(student_id)))
            return _to_record(row) if row else None

    def list_by_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with self._db.transaction() as db:
            rows = [r for (sid, _), r in db.records.items() if sid == int(session_id)]
        return [_to_record(r) for r in sorted(rows, key=lambda r: r["student_id"])]

    def list_by_student(self, student_id: int, *, subject_id: Optional[int] = None) -> Sequence[StudentSessionRow]:
        student_id = int(student_id)
        with self._db.transaction() as db:
            subjects = {s for s, students in db.enrollments.items() if student_id in students}
            if subject_id is not None:
                subjects &= {int(subject_id)}
            sessions = [s for s in db.sessions.values() if s["subject_id"] in subjects]
            out = []
            for s in sessions:
                row = db.records.get((s["id"], student_id))
                out.append(
                    StudentSessionRow(
                        session_id=s["id"],
                        subject_id=s["subject_id"],
                        session_date=s["session_date"],
                        session_time=s["session_time"],
                        is_visible=s["is_visible"],
                        status=row["status"] if row else None,
                        marked_at=row["updated_at"] if row else None,
                    )
                )
        out.sort(key=lambda r: (r.session_date, r.session_time or time.min, r.session_id), reverse=True)
        return out

    def count_by_session(self, subject_id: int) -> Dict[int, Dict[AttendanceStatus, int]]:
        out: Dict[int, Dict[AttendanceStatus, int]] = {}
        with self._db.transaction() as db:
            for (sid, _), row in db.records.items():
                session = db.sessions.get(sid)
                if session is None or session["subject_id"] != int(subject_id):
                    continue
                counts = out.setdefault(sid, {})
                counts[row["status"]] = counts.get(row["status"], 0) + 1
        return out

    def count_for_subject(self, subject_id: int) -> Dict[AttendanceStatus, int]:
        total: Counter = Counter()
        for counts in self.count_by_session(subject_id).values():
            total.update(counts)
        return dict(total)
