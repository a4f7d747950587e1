from __future__ import annotations

from datetime import date, datetime, time

import pytest

from classroom_attendance.container import build_container
from classroom_attendance.database.memory_base import MemoryDatabase

SUBJECT_ID = 1
STUDENTS = (2, 3, 4)


@pytest.fixture
def memory_db() -> MemoryDatabase:
    db = MemoryDatabase()
    db.add_user(2, "Alice Nguyen")
    db.add_user(3, "Bob")
    db.add_user(4, "Carol Tran")
    db.enroll(SUBJECT_ID, *STUDENTS)
    db.enroll(2, 2)
    return db


@pytest.fixture
def container(memory_db):
    return build_container(backend="memory", memory_db=memory_db)


@pytest.fixture
def fixed_now() -> datetime:
    # session below starts 08:00, late after 08:15
    return datetime(2025, 9, 1, 7, 55)


@pytest.fixture
def open_session(container, fixed_now):
    """Create a subject-1 session at 2025-09-01 08:00 and mint a 60 min token at fixed_now."""

    def _open(*, late_after_minutes: int = 15, session_time=time(8, 0), roster=None):
        created = container.session_service.create_session(
            subject_id=SUBJECT_ID,
            session_date=date(2025, 9, 1),
            session_time=session_time,
            is_visible=True,
            roster=roster,
            late_after_minutes=late_after_minutes,
        )
        minted = container.token_minter.mint(
            session_id=created.session_id,
            subject_id=SUBJECT_ID,
            validity_minutes=60,
            late_after_minutes=late_after_minutes,
            now=fixed_now,
        )
        return created.session_id, minted.token

    return _open
