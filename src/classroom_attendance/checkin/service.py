from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ..activity.model import ActivityEvent
from ..attendance.repository import AttendanceLedger
from ..common.datetime_utils import now_local
from ..common.logging import get_logger, token_hint
from ..common.retry import retry_transient
from ..common.validators import require_non_empty, require_positive_int
from ..core.enums import ActivityAction, AttendanceStatus
from ..core.exceptions import NotEnrolled, TokenInvalid
from ..directory.repository import EnrollmentDirectory
from ..sessions.repository import SessionRepository
from .evaluator import SessionPreview, classify, ensure_token_usable, preview
from .factory import CheckinStrategyFactory

logger = get_logger(__name__)


@dataclass(frozen=True)
class CheckinResult:
    session_id: int
    student_id: int
    status: AttendanceStatus
    already_marked: bool
    events: List[ActivityEvent] = field(default_factory=list)


class CheckinService:
    def __init__(
        self,
        sessions: SessionRepository,
        ledger: AttendanceLedger,
        enrollment: EnrollmentDirectory,
        *,
        factory: CheckinStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
        retry_attempts: int | None = None,
    ):
        self._sessions = sessions
        self._ledger = ledger
        self._enrollment = enrollment
        self._factory = factory or CheckinStrategyFactory()
        self._clock = clock
        self._retry_kwargs = {"attempts": retry_attempts} if retry_attempts else {}

    def validate(self, token: str, *, now: datetime | None = None) -> SessionPreview:
        """Preview the check-in a token would produce. Never writes."""

        token = require_non_empty(token, "token")
        now = now or self._clock()
        session = ensure_token_usable(self._sessions.get_by_token(token), token, now)
        return preview(session, now, factory=self._factory)

    def checkin(self, token: str, student_id: int, *, now: datetime | None = None) -> CheckinResult:
        token = require_non_empty(token, "token")
        student_id = require_positive_int(student_id, "studentId")
        now = now or self._clock()

        session = ensure_token_usable(self._sessions.get_by_token(token), token, now)
        if not self._enrollment.is_enrolled(session.subject_id, student_id):
            raise NotEnrolled("You are not enrolled in this subject")

        status = classify(session, now, factory=self._factory)
        outcome = retry_transient(
            lambda: self._ledger.upsert_checkin(
                session_id=session.session_id,
                student_id=student_id,
                status=status,
                token=token,
            ),
            **self._retry_kwargs,
        )
        if outcome is None:
            # re-minted between our read and the write
            logger.info("token %s revoked during check-in of student %s", token_hint(token), student_id)
            raise TokenInvalid("QR code is invalid or has been replaced")

        if not outcome.written:
            logger.info(
                "student %s already marked %s in session %s",
                student_id, outcome.effective_status.value, session.session_id,
            )
            return CheckinResult(
                session_id=session.session_id,
                student_id=student_id,
                status=outcome.effective_status,
                already_marked=True,
            )

        logger.info("student %s checked in %s to session %s", student_id, status.value, session.session_id)
        return CheckinResult(
            session_id=session.session_id,
            student_id=student_id,
            status=outcome.effective_status,
            already_marked=False,
            events=[
                ActivityEvent(
                    action=ActivityAction.CHECKIN,
                    description=f"Checked in to attendance session {session.session_id} as {outcome.effective_status.value}",
                    user_id=student_id,
                )
            ],
        )
