from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from ..activity.model import ActivityEvent
from ..attendance.repository import AttendanceLedger
from ..common.datetime_utils import format_clock_time
from ..common.logging import get_logger
from ..common.validators import optional_time, require_date, require_non_negative_int, require_positive_int, require_status
from ..core.constants import DEFAULT_LATE_AFTER_MINUTES
from ..core.enums import ActivityAction, AttendanceStatus
from ..core.exceptions import SessionNotFound, ValidationError
from ..directory.repository import EnrollmentDirectory, UserDirectory
from ..stats.aggregator import summarize, summarize_counts
from .model import AttendanceSession, RosterEntry
from .repository import SessionRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionMutation:
    session_id: int
    events: List[ActivityEvent] = field(default_factory=list)


def parse_roster(items: Optional[Iterable[Any]]) -> Optional[List[RosterEntry]]:
    """Roster payload -> entries. None stays None (no roster given)."""

    if items is None:
        return None
    if isinstance(items, (str, bytes, Mapping)):
        raise ValidationError("records must be a list")

    entries: List[RosterEntry] = []
    seen: set[int] = set()
    for item in items:
        if isinstance(item, RosterEntry):
            entry = item
        elif isinstance(item, Mapping):
            entry = RosterEntry(
                student_id=require_positive_int(item.get("studentId"), "studentId"),
                status=require_status(item.get("status", AttendanceStatus.ABSENT.value)),
            )
        else:
            raise ValidationError("each record must be an object with studentId and status")

        if entry.student_id in seen:
            raise ValidationError(f"Duplicate studentId {entry.student_id} in records")
        seen.add(entry.student_id)
        entries.append(entry)
    return entries


def session_to_dict(s: AttendanceSession) -> dict:
    return {
        "id": s.session_id,
        "subjectId": s.subject_id,
        "date": s.session_date.isoformat(),
        "time": format_clock_time(s.session_time),
        "isVisible": s.is_visible,
        "qrExpiresAt": s.qr_expires_at.isoformat() if s.qr_expires_at else None,
        "allowLateAfterMinutes": s.late_after_minutes,
    }


class SessionService:
    """Instructor-side session management: create, list, detail, full override, delete."""

    def __init__(
        self,
        sessions: SessionRepository,
        ledger: AttendanceLedger,
        enrollment: EnrollmentDirectory,
        users: UserDirectory,
        *,
        default_late_after_minutes: int = DEFAULT_LATE_AFTER_MINUTES,
    ):
        self._sessions = sessions
        self._ledger = ledger
        self._enrollment = enrollment
        self._users = users
        self._default_late = int(default_late_after_minutes)

    def _require(self, subject_id: int, session_id: int) -> AttendanceSession:
        session = self._sessions.get_by_id(session_id, subject_id=subject_id)
        if not session:
            raise SessionNotFound(f"Attendance session {session_id} not found")
        return session

    def create_session(
        self,
        *,
        subject_id: Any,
        session_date: Any,
        session_time: Any = None,
        is_visible: bool = False,
        roster: Optional[Sequence[Any]] = None,
        late_after_minutes: Any = None,
        actor_id: Optional[int] = None,
    ) -> SessionMutation:
        subject_id = require_positive_int(subject_id, "subjectId")
        d: date = require_date(session_date, "date")
        t: Optional[time] = optional_time(session_time, "time")
        late = self._default_late if late_after_minutes is None else require_non_negative_int(
            late_after_minutes, "allowLateAfterMinutes"
        )

        entries = parse_roster(roster)
        if entries is None:
            # no explicit roster: everyone enrolled starts absent
            entries = [RosterEntry(student_id=s) for s in self._enrollment.list_students(subject_id)]

        session_id = self._sessions.create(
            subject_id=subject_id,
            session_date=d,
            session_time=t,
            is_visible=bool(is_visible),
            late_after_minutes=late,
            roster=entries,
        )
        logger.info("created session %s for subject %s with %d roster rows", session_id, subject_id, len(entries))
        return SessionMutation(
            session_id=session_id,
            events=[
                ActivityEvent(
                    action=ActivityAction.CREATE,
                    description=f"Created attendance session {session_id} for subject {subject_id} on {d.isoformat()}",
                    user_id=actor_id,
                )
            ],
        )

    def replace_session(
        self,
        *,
        subject_id: Any,
        session_id: Any,
        session_date: Any,
        session_time: Any = None,
        is_visible: bool = False,
        roster: Optional[Sequence[Any]] = None,
        actor_id: Optional[int] = None,
    ) -> SessionMutation:
        """Overwrite metadata; a given roster replaces the whole ledger (None keeps it)."""

        subject_id = require_positive_int(subject_id, "subjectId")
        session_id = require_positive_int(session_id, "sessionId")
        d = require_date(session_date, "date")
        t = optional_time(session_time, "time")
        entries = parse_roster(roster)

        ok = self._sessions.replace(
            session_id=session_id,
            subject_id=subject_id,
            session_date=d,
            session_time=t,
            is_visible=bool(is_visible),
            roster=entries,
        )
        if not ok:
            raise SessionNotFound(f"Attendance session {session_id} not found")

        logger.info(
            "replaced session %s (subject %s), roster=%s",
            session_id, subject_id, "kept" if entries is None else len(entries),
        )
        return SessionMutation(
            session_id=session_id,
            events=[
                ActivityEvent(
                    action=ActivityAction.UPDATE,
                    description=f"Updated attendance session {session_id} for subject {subject_id}",
                    user_id=actor_id,
                )
            ],
        )

    def delete_session(self, *, subject_id: Any, session_id: Any, actor_id: Optional[int] = None) -> SessionMutation:
        subject_id = require_positive_int(subject_id, "subjectId")
        session_id = require_positive_int(session_id, "sessionId")
        if not self._sessions.delete(session_id=session_id, subject_id=subject_id):
            raise SessionNotFound(f"Attendance session {session_id} not found")

        logger.info("deleted session %s (subject %s)", session_id, subject_id)
        return SessionMutation(
            session_id=session_id,
            events=[
                ActivityEvent(
                    action=ActivityAction.DELETE,
                    description=f"Deleted attendance session {session_id} for subject {subject_id}",
                    user_id=actor_id,
                )
            ],
        )

    def list_sessions(self, subject_id: Any) -> List[dict]:
        subject_id = require_positive_int(subject_id, "subjectId")
        counts = self._ledger.count_by_session(subject_id)
        out = []
        for s in self._sessions.list_for_subject(subject_id):
            summary = summarize_counts(counts.get(s.session_id, {}))
            row = session_to_dict(s)
            row["participants"] = summary.total
            row.update(summary.to_dict())
            out.append(row)
        return out

    def get_session_detail(self, subject_id: Any, session_id: Any) -> dict:
        subject_id = require_positive_int(subject_id, "subjectId")
        session_id = require_positive_int(session_id, "sessionId")
        session = self._require(subject_id, session_id)

        records = self._ledger.list_by_session(session_id)
        names = self._users.display_names(r.student_id for r in records)
        data = session_to_dict(session)
        data["records"] = [
            {
                "studentId": r.student_id,
                "name": names.get(r.student_id),
                "status": r.status.value,
                "updatedAt": r.updated_at.isoformat() if r.updated_at else None,
            }
            for r in records
        ]
        data["stats"] = summarize(r.status for r in records).to_dict()
        return data

    def export_roster_csv(self, subject_id: Any, session_id: Any) -> str:
        detail = self.get_session_detail(subject_id, session_id)
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["student_id", "name", "status"])
        for r in detail["records"]:
            writer.writerow([r["studentId"], r["name"] or "", r["status"]])
        return buf.getvalue()
