from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: ledger row for one student in one session."""

    session_id: int
    student_id: int
    status: AttendanceStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class UpsertOutcome:
    written: bool
    effective_status: AttendanceStatus


@dataclass(frozen=True)
class StudentSessionRow:
    """Read-model for a student's history: one row per session, status None when no ledger row."""

    session_id: int
    subject_id: int
    session_date: date
    session_time: Optional[time]
    is_visible: bool
    status: Optional[AttendanceStatus]
    marked_at: Optional[datetime] = None
