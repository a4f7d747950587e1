from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from urllib.parse import urlencode

from ..activity.model import ActivityEvent
from ..common.datetime_utils import now_local
from ..common.logging import get_logger, token_hint
from ..common.validators import require_non_negative_int, require_positive_int
from ..core.constants import CHECKIN_PATH, TOKEN_BYTES
from ..core.enums import ActivityAction
from ..core.exceptions import SessionNotFound
from ..sessions.repository import SessionRepository

logger = get_logger(__name__)


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def checkin_url(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{CHECKIN_PATH}?{urlencode({'token': token})}"


@dataclass(frozen=True)
class MintedToken:
    session_id: int
    token: str
    expires_at: datetime
    late_after_minutes: int
    events: List[ActivityEvent] = field(default_factory=list)


class TokenMinter:
    """Issues the session's single active token; minting again revokes the previous one."""

    def __init__(
        self,
        sessions: SessionRepository,
        *,
        token_factory: Callable[[], str] = generate_token,
        clock: Callable[[], datetime] = now_local,
    ):
        self._sessions = sessions
        self._token_factory = token_factory
        self._clock = clock

    def mint(
        self,
        *,
        session_id: int,
        subject_id: Optional[int] = None,
        validity_minutes: int,
        late_after_minutes: int,
        actor_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> MintedToken:
        session_id = require_positive_int(session_id, "sessionId")
        validity_minutes = require_positive_int(validity_minutes, "expiresInMinutes")
        late_after_minutes = require_non_negative_int(late_after_minutes, "allowLateAfterMinutes")

        now = now or self._clock()
        token = self._token_factory()
        expires_at = now + timedelta(minutes=validity_minutes)

        ok = self._sessions.set_token(
            session_id=session_id,
            subject_id=subject_id,
            token=token,
            expires_at=expires_at,
            late_after_minutes=late_after_minutes,
        )
        if not ok:
            raise SessionNotFound(f"Attendance session {session_id} not found")

        logger.info(
            "minted token %s for session %s, expires %s, late after %s min",
            token_hint(token), session_id, expires_at.isoformat(), late_after_minutes,
        )
        return MintedToken(
            session_id=session_id,
            token=token,
            expires_at=expires_at,
            late_after_minutes=late_after_minutes,
            events=[
                ActivityEvent(
                    action=ActivityAction.MINT,
                    description=f"Generated attendance QR for session {session_id}",
                    user_id=actor_id,
                )
            ],
        )
