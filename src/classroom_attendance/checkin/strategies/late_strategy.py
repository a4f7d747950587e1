from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import AttendanceSession
from .base import CheckinStrategy, StatusDecision


class LateStrategy(CheckinStrategy):
    """Late check-in."""

    def decide(self, *, now: datetime, session: AttendanceSession) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE)
