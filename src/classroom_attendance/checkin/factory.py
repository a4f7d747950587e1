from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..sessions.model import AttendanceSession
from .strategies.base import CheckinStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class CheckinStrategyFactory:
    """Factory Pattern: choose the strategy from the session's late threshold."""

    def for_checkin(self, *, now: datetime, session: AttendanceSession) -> CheckinStrategy:
        # inclusive: exactly on the threshold is still on time
        if now <= session.late_threshold:
            return PresentStrategy()
        return LateStrategy()
