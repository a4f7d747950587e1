"""Pure decision functions for QR check-in.

Nothing here touches storage; callers pass the session they loaded and "now".
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import TokenExpired, TokenInvalid
from ..sessions.model import AttendanceSession
from .factory import CheckinStrategyFactory


@dataclass(frozen=True)
class SessionPreview:
    session_id: int
    subject_id: int
    session_date: date
    session_time: Optional[time]
    expires_at: datetime
    late_threshold: datetime
    status: AttendanceStatus


def ensure_token_usable(session: Optional[AttendanceSession], token: str, now: datetime) -> AttendanceSession:
    if session is None or not session.qr_token or not hmac.compare_digest(session.qr_token.encode(), token.encode()):
        raise TokenInvalid("QR code is invalid or has been replaced")
    if session.qr_expires_at is None or now > session.qr_expires_at:
        raise TokenExpired("QR code has expired")
    return session


def classify(
    session: AttendanceSession,
    now: datetime,
    *,
    factory: Optional[CheckinStrategyFactory] = None,
) -> AttendanceStatus:
    factory = factory or CheckinStrategyFactory()
    return factory.for_checkin(now=now, session=session).decide(now=now, session=session).status


def preview(
    session: AttendanceSession,
    now: datetime,
    *,
    factory: Optional[CheckinStrategyFactory] = None,
) -> SessionPreview:
    return SessionPreview(
        session_id=session.session_id,
        subject_id=session.subject_id,
        session_date=session.session_date,
        session_time=session.session_time,
        expires_at=session.qr_expires_at,
        late_threshold=session.late_threshold,
        status=classify(session, now, factory=factory),
    )
