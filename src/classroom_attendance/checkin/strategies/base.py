from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import AttendanceSession


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus


class CheckinStrategy(ABC):
    """Strategy Pattern: encapsulate how a self-service check-in is classified."""

    @abstractmethod
    def decide(self, *, now: datetime, session: AttendanceSession) -> StatusDecision:
        raise NotImplementedError
