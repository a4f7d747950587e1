from __future__ import annotations

from typing import Dict, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceRecord, StudentSessionRow, UpsertOutcome
from .repository import AttendanceLedger


class MySQLAttendanceRepository(AttendanceLedger):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert_checkin(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        token: Optional[str] = None,
    ) -> Optional[UpsertOutcome]:
        with db_cursor(self._conn_factory) as (_, cur):
            if token is not None:
                # Holds the session row until commit: a concurrent re-mint waits for us,
                # and we never write against a token that was already replaced.
                cur.execute(
                    "SELECT id FROM attendance_sessions WHERE id=%s AND qr_token=%s LOCK IN SHARE MODE",
                    (int(session_id), token),
                )
                if not fetchone(cur):
                    return None

            cur.execute(
                """
                INSERT INTO attendance_records (session_id, student_id, status)
                VALUES (%s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    status = IF(status = %s, VALUES(status), status)
                """,
                (int(session_id), int(student_id), status.value, AttendanceStatus.ABSENT.value),
            )
            # 1 = inserted, 2 = absent row upgraded, 0 = existing row kept
            written = cur.rowcount > 0

            cur.execute(
                "SELECT status FROM attendance_records WHERE session_id=%s AND student_id=%s FOR UPDATE",
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            return UpsertOutcome(written=written, effective_status=AttendanceStatus(r["status"]))

    def get(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, student_id, status, created_at, updated_at
                FROM attendance_records
                WHERE session_id=%s AND student_id=%s
                """,
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                session_id=int(r["session_id"]),
                student_id=int(r["student_id"]),
                status=AttendanceStatus(r["status"]),
                created_at=r.get("created_at"),
                updated_at=r.get("updated_at"),
            )

    def list_by_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT session_id, student_id, status, created_at, updated_at
                FROM attendance_records
                WHERE session_id=%s
                ORDER BY student_id ASC
                """,
                (int(session_id),),
            )
            return [
                AttendanceRecord(
                    session_id=int(r["session_id"]),
                    student_id=int(r["student_id"]),
                    status=AttendanceStatus(r["status"]),
                    created_at=r.get("created_at"),
                    updated_at=r.get("updated_at"),
                )
                for r in fetchall(cur)
            ]

    def list_by_student(self, student_id: int, *, subject_id: Optional[int] = None) -> Sequence[StudentSessionRow]:
        where = ""
        params: list[object] = [int(student_id), int(student_id)]
        if subject_id is not None:
            where = "WHERE s.subject_id=%s"
            params.append(int(subject_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    s.id AS session_id, s.subject_id, s.session_date, s.session_time, s.is_visible,
                    r.status, r.updated_at AS marked_at
                FROM attendance_sessions s
                JOIN subject_students ss ON ss.subject_id = s.subject_id AND ss.student_id = %s
                LEFT JOIN attendance_records r ON r.session_id = s.id AND r.student_id = %s
                {where}
                ORDER BY s.session_date DESC, s.session_time DESC, s.id DESC
                """,
                tuple(params),
            )
            return [
                StudentSessionRow(
                    session_id=int(r["session_id"]),
                    subject_id=int(r["subject_id"]),
                    session_date=r["session_date"],
                    session_time=normalize_mysql_time(r.get("session_time")),
                    is_visible=bool(r.get("is_visible")),
                    status=AttendanceStatus(r["status"]) if r.get("status") else None,
                    marked_at=r.get("marked_at"),
                )
                for r in fetchall(cur)
            ]

    def count_by_session(self, subject_id: int) -> Dict[int, Dict[AttendanceStatus, int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT r.session_id, r.status, COUNT(*) AS n
                FROM attendance_records r
                JOIN attendance_sessions s ON s.id = r.session_id
                WHERE s.subject_id=%s
                GROUP BY r.session_id, r.status
                """,
                (int(subject_id),),
            )
            out: Dict[int, Dict[AttendanceStatus, int]] = {}
            for r in fetchall(cur):
                out.setdefault(int(r["session_id"]), {})[AttendanceStatus(r["status"])] = int(r["n"])
            return out

    def count_for_subject(self, subject_id: int) -> Dict[AttendanceStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT r.status, COUNT(*) AS n
                FROM attendance_records r
                JOIN attendance_sessions s ON s.id = r.session_id
                WHERE s.subject_id=%s
                GROUP BY r.status
                """,
                (int(subject_id),),
            )
            return {AttendanceStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}
