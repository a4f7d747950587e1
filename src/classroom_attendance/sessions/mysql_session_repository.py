from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceSession, RosterEntry
from .repository import SessionRepository

_SESSION_COLUMNS = """
    id, subject_id, session_date, session_time, is_visible,
    qr_token, qr_expires_at, allow_late_after_minutes, created_at, updated_at
"""

_INSERT_RECORD = "INSERT INTO attendance_records (session_id, student_id, status) VALUES (%s, %s, %s)"


def _to_session(r: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["id"]),
        subject_id=int(r["subject_id"]),
        session_date=r["session_date"],
        session_time=normalize_mysql_time(r.get("session_time")),
        is_visible=bool(r.get("is_visible")),
        qr_token=r.get("qr_token"),
        qr_expires_at=r.get("qr_expires_at"),
        late_after_minutes=int(r.get("allow_late_after_minutes") or 0),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _roster_params(session_id: int, roster: Sequence[RosterEntry]) -> list[tuple]:
    return [(int(session_id), int(e.student_id), e.status.value) for e in roster]


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions
                    (subject_id, session_date, session_time, is_visible, allow_late_after_minutes)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (int(subject_id), session_date, session_time, 1 if is_visible else 0, int(late_after_minutes)),
            )
            session_id = int(cur.lastrowid)
            if roster:
                cur.executemany(_INSERT_RECORD, _roster_params(session_id, roster))
            return session_id

    def get_by_id(self, session_id: int, *, subject_id: Optional[int] = None) -> Optional[AttendanceSession]:
        clauses = ["id=%s"]
        params: list[object] = [int(session_id)]
        if subject_id is not None:
            clauses.append("subject_id=%s")
            params.append(int(subject_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_token(self, token: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE qr_token=%s",
                (token,),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_for_subject(self, subject_id: int) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE subject_id=%s
                ORDER BY session_date DESC, session_time DESC, id DESC
                """,
                (int(subject_id),),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def set_token(
        self,
        *,
        session_id: int,
        subject_id: Optional[int],
        token: str,
        expires_at: datetime,
        late_after_minutes: int,
    ) -> bool:
        clauses = ["id=%s"]
        params: list[object] = [token, expires_at, int(late_after_minutes), int(session_id)]
        if subject_id is not None:
            clauses.append("subject_id=%s")
            params.append(int(subject_id))

        with db_cursor(self._conn_factory) as (_, cur):
            # Blocks behind in-flight check-ins holding the session row in share mode.
            cur.execute(
                f"""
                UPDATE attendance_sessions
                SET qr_token=%s, qr_expires_at=%s, allow_late_after_minutes=%s
                WHERE {' AND '.join(clauses)}
                """,
                tuple(params),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id FROM attendance_sessions WHERE id=%s AND subject_id=%s FOR UPDATE",
                (int(session_id), int(subject_id)),
            )
            if not fetchone(cur):
                return False

            cur.execute(
                """
                UPDATE attendance_sessions
                SET session_date=%s, session_time=%s, is_visible=%s, updated_at=NOW()
                WHERE id=%s
                """,
                (session_date, session_time, 1 if is_visible else 0, int(session_id)),
            )

            if roster is not None:
                cur.execute("DELETE FROM attendance_records WHERE session_id=%s", (int(session_id),))
                if roster:
                    cur.executemany(_INSERT_RECORD, _roster_params(session_id, roster))
            return True

    def delete(self, *, session_id: int, subject_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE r FROM attendance_records r
                JOIN attendance_sessions s ON s.id = r.session_id
                WHERE s.id=%s AND s.subject_id=%s
                """,
                (int(session_id), int(subject_id)),
            )
            cur.execute(
                "DELETE FROM attendance_sessions WHERE id=%s AND subject_id=%s",
                (int(session_id), int(subject_id)),
            )
            return cur.rowcount > 0
