from __future__ import annotations

from datetime import date, time, timedelta

import mysql.connector
import pytest

from classroom_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from classroom_attendance.core.enums import AttendanceStatus
from classroom_attendance.core.exceptions import TransientStorageError
from classroom_attendance.sessions.model import RosterEntry
from classroom_attendance.sessions.mysql_session_repository import MySQLSessionRepository


class FakeCursor:
    """Replays scripted results, one step per execute()."""

    def __init__(self, script):
        self.script = list(script)
        self.executed = []
        self.rowcount = 0
        self.lastrowid = None
        self._rows = []

    def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))
        step = self.script.pop(0) if self.script else {}
        if "raise" in step:
            raise step["raise"]
        self.rowcount = step.get("rowcount", 0)
        self.lastrowid = step.get("lastrowid")
        self._rows = step.get("rows", [])

    def executemany(self, sql, seq):
        self.executed.append((" ".join(sql.split()), list(seq)))

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, *scripts):
        self.connections = [FakeConnection(FakeCursor(s)) for s in scripts]
        self._next = 0

    def connect(self):
        conn = self.connections[self._next]
        self._next += 1
        return conn

    def sql(self, n=0):
        return [s for s, _ in self.connections[n]._cursor.executed]


def test_upsert_checks_token_and_writes_conditionally_in_one_transaction():
    factory = FakeConnFactory(
        [
            {"rows": [{"id": 7}]},
            {"rowcount": 1},
            {"rows": [{"status": "present"}]},
        ]
    )
    ledger = MySQLAttendanceRepository(factory)

    outcome = ledger.upsert_checkin(session_id=7, student_id=2, status=AttendanceStatus.PRESENT, token="tok")

    assert outcome.written is True
    assert outcome.effective_status == AttendanceStatus.PRESENT
    sql = factory.sql()
    assert "qr_token=%s LOCK IN SHARE MODE" in sql[0]
    assert "ON DUPLICATE KEY UPDATE status = IF(status = %s, VALUES(status), status)" in sql[1]
    assert sql[2].endswith("FOR UPDATE")
    assert factory.connections[0]._cursor.executed[1][1] == (7, 2, "present", "absent")
    assert factory.connections[0].committed
    assert factory.connections[0].closed


def test_upsert_unchanged_row_reports_already_marked():
    factory = FakeConnFactory(
        [
            {"rows": [{"id": 7}]},
            {"rowcount": 0},
            {"rows": [{"status": "late"}]},
        ]
    )

    outcome = MySQLAttendanceRepository(factory).upsert_checkin(
        session_id=7, student_id=2, status=AttendanceStatus.PRESENT, token="tok"
    )

    assert outcome.written is False
    assert outcome.effective_status == AttendanceStatus.LATE


def test_upsert_with_replaced_token_writes_nothing():
    factory = FakeConnFactory([{"rows": []}])

    outcome = MySQLAttendanceRepository(factory).upsert_checkin(
        session_id=7, student_id=2, status=AttendanceStatus.PRESENT, token="old"
    )

    assert outcome is None
    assert len(factory.sql()) == 1


def test_deadlock_rolls_back_and_surfaces_as_transient():
    deadlock = mysql.connector.errors.DatabaseError(msg="Deadlock found", errno=1213)
    factory = FakeConnFactory([{"rows": [{"id": 7}]}, {"raise": deadlock}])

    with pytest.raises(TransientStorageError):
        MySQLAttendanceRepository(factory).upsert_checkin(
            session_id=7, student_id=2, status=AttendanceStatus.PRESENT, token="tok"
        )

    conn = factory.connections[0]
    assert conn.rolled_back and not conn.committed and conn.closed


def test_other_mysql_errors_propagate_unchanged():
    boom = mysql.connector.errors.ProgrammingError(msg="bad sql", errno=1064)
    factory = FakeConnFactory([{"raise": boom}])

    with pytest.raises(mysql.connector.errors.ProgrammingError):
        MySQLAttendanceRepository(factory).get(session_id=1, student_id=2)
    assert factory.connections[0].rolled_back


def test_list_by_student_left_joins_ledger_over_enrolled_sessions():
    factory = FakeConnFactory(
        [
            {
                "rows": [
                    {
                        "session_id": 5,
                        "subject_id": 1,
                        "session_date": date(2025, 9, 1),
                        "session_time": timedelta(hours=8),
                        "is_visible": 1,
                        "status": None,
                        "marked_at": None,
                    }
                ]
            }
        ]
    )

    rows = MySQLAttendanceRepository(factory).list_by_student(2, subject_id=1)

    assert rows[0].status is None
    assert rows[0].session_time == time(8, 0)
    sql = factory.sql()[0]
    assert "JOIN subject_students" in sql and "LEFT JOIN attendance_records" in sql
    assert factory.connections[0]._cursor.executed[0][1] == (2, 2, 1)


def test_session_replace_runs_delete_and_insert_in_same_transaction():
    factory = FakeConnFactory([{"rows": [{"id": 5}]}, {"rowcount": 1}, {"rowcount": 3}])
    repo = MySQLSessionRepository(factory)

    ok = repo.replace(
        session_id=5,
        subject_id=1,
        session_date=date(2025, 9, 2),
        session_time=None,
        is_visible=True,
        roster=[RosterEntry(2, AttendanceStatus.EXCUSED)],
    )

    assert ok is True
    sql = factory.sql()
    assert sql[0].endswith("FOR UPDATE")
    assert sql[2].startswith("DELETE FROM attendance_records")
    assert sql[3].startswith("INSERT INTO attendance_records")
    assert factory.connections[0]._cursor.executed[3][1] == [(5, 2, "excused")]
    assert factory.connections[0].committed


def test_session_replace_without_roster_leaves_ledger():
    factory = FakeConnFactory([{"rows": [{"id": 5}]}, {"rowcount": 1}])

    MySQLSessionRepository(factory).replace(
        session_id=5, subject_id=1, session_date=date(2025, 9, 2), session_time=None, is_visible=True, roster=None
    )

    assert not any("attendance_records" in s for s in factory.sql())


def test_session_replace_unknown_session():
    factory = FakeConnFactory([{"rows": []}])

    assert MySQLSessionRepository(factory).replace(
        session_id=5, subject_id=1, session_date=date(2025, 9, 2), session_time=None, is_visible=True, roster=[]
    ) is False
    assert len(factory.sql()) == 1
