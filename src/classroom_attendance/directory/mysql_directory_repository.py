from __future__ import annotations

from typing import Dict, Iterable, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .repository import EnrollmentDirectory, UserDirectory


class MySQLEnrollmentDirectory(EnrollmentDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_enrolled(self, subject_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id FROM subject_students WHERE subject_id=%s AND student_id=%s",
                (int(subject_id), int(student_id)),
            )
            return fetchone(cur) is not None

    def list_students(self, subject_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT student_id FROM subject_students WHERE subject_id=%s ORDER BY student_id",
                (int(subject_id),),
            )
            return [int(r["student_id"]) for r in fetchall(cur)]

    def count_students(self, subject_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM subject_students WHERE subject_id=%s",
                (int(subject_id),),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def subjects_for_student(self, student_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT subject_id FROM subject_students WHERE student_id=%s ORDER BY subject_id",
                (int(student_id),),
            )
            return [int(r["subject_id"]) for r in fetchall(cur)]


class MySQLUserDirectory(UserDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def display_names(self, user_ids: Iterable[int]) -> Dict[int, str]:
        ids = sorted({int(u) for u in user_ids})
        if not ids:
            return {}

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.id, u.username, p.first_name, p.last_name
                FROM users u
                LEFT JOIN profiles p ON p.user_id = u.id
                WHERE u.id IN ({in_placeholders(ids)})
                """,
                tuple(ids),
            )
            out: Dict[int, str] = {}
            for r in fetchall(cur):
                full = " ".join(p for p in (r.get("first_name"), r.get("last_name")) if p)
                out[int(r["id"])] = full or r["username"]
            return out
