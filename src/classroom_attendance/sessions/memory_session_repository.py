from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Optional, Sequence

from ..database.memory_base import MemoryDatabase
from .model import AttendanceSession, RosterEntry
from .repository import SessionRepository


def _to_session(row: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=row["id"],
        subject_id=row["subject_id"],
        session_date=row["session_date"],
        session_time=row["session_time"],
        is_visible=row["is_visible"],
        qr_token=row["qr_token"],
        qr_expires_at=row["qr_expires_at"],
        late_after_minutes=row["allow_late_after_minutes"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _insert_roster(db: MemoryDatabase, session_id: int, roster: Sequence[RosterEntry]) -> None:
    now = db.now()
    for entry in roster:
        db.records[(session_id, int(entry.student_id))] = {
            "session_id": session_id,
            "student_id": int(entry.student_id),
            "status": entry.status,
            "created_at": now,
            "updated_at": now,
        }


def _drop_records(db: MemoryDatabase, session_id: int) -> None:
    for key in [k for k in db.records if k[0] == session_id]:
        del db.records[key]


class MemorySessionRepository(SessionRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def _resolve(self, db: MemoryDatabase, session_id: int, subject_id: Optional[int]) -> Optional[Dict[str, Any]]:
        row = db.sessions.get(int(session_id))
        if row is None:
            return None
        if subject_id is not None and row["subject_id"] != int(subject_id):
            return None
        return row

    def create(
        self,
        *,
        subject_id: int,
        session_date: date,
        session_time: Optional[time],
        is_visible: bool,
        late_after_minutes: int,
        roster: Sequence[RosterEntry],
    ) -> int:
        with self._db.transaction() as db:
            session_id = db.next_id("attendance_sessions")
            now = db.now()
            db.sessions[session_id] = {
                "id": session_id,
                "subject_id": int(subject_id),
                "session_date": session_date,
                "session_time": session_time,
                "is_visible": bool(is_visible),
                "qr_token": None,
                "qr_expires_at": None,
                "allow_late_after_minutes": int(late_after_minutes),
                "created_at": now,
                "updated_at": now,
            }
            _insert_roster(db, session_id, roster)
            return session_id

    def get_by_id(self, session_id: int, *, subject_id: Optional[int] = None) -> Optional[AttendanceSession]:
        with self._db.transaction() as db:
            row = self._resolve(db, session_id, subject_id)
            return _to_session(row) if row else None

    def get_by_token(self, token: str) -> Optional[AttendanceSession]:
        with self._db.transaction() as db:
            row = db.find_session_by_token(token)
            return _to_session(row) if row else None

    def list_for_subject(self, subject_id: int) -> Sequence[AttendanceSession]:
        with self._db.transaction() as db:
            rows = [r for r in db.sessions.values() if r["subject_id"] == int(subject_id)]
        rows.sort(key=lambda r: (r["session_date"], r["session_time"] or time.min, r["id"]), reverse=True)
        return [_to_session(r) for r in rows]

    def set_token(
        self,
        *,
        session_id: int,
        subject_id: Optional[int],
        token: str,
        expires_at: datetime,
        late_after_minutes: int,
    ) -> bool:
        with self._db.transaction() as db:
            row = self._resolve(db, session_id, subject_id)
            if row is None:
                return False
            row["qr_token"] = token
            row["qr_expires_at"] = expires_at
            row["allow_late_after_minutes"] = int(late_after_minutes)
            row["updated_at"] = db.now()
            return True

    def replace(
        self,
        *,
        session_id: int,
        subject_id: int,
        session_date: date,
        session_time: Optional[time],
        is_visible: bool,
        roster: Optional[Sequence[RosterEntry]],
    ) -> bool:
        with self._db.transaction() as db:
            row = self._resolve(db, session_id, subject_id)
            if row is None:
                return False
            row["session_date"] = session_date
            row["session_time"] = session_time
            row["is_visible"] = bool(is_visible)
            row["updated_at"] = db.now()
            if roster is not None:
                _drop_records(db, row["id"])
                _insert_roster(db, row["id"], roster)
            return True

    def delete(self, *, session_id: int, subject_id: int) -> bool:
        with self._db.transaction() as db:
            row = self._resolve(db, session_id, subject_id)
            if row is None:
                return False
            _drop_records(db, row["id"])
            del db.sessions[row["id"]]
            return True
