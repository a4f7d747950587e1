from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from .model import AttendanceSession, RosterEntry


class SessionRepository(Protocol):
    """Durable registry of attendance sessions.

    Multi-row writes (session + roster) happen in one transaction.
    """

    def create(
        self,
        *,
        subject_id: int,
        session_date: date,
        session_time: Optional[time],
        is_visible: bool,
        late_after_minutes: int,
        roster: Sequence[RosterEntry],
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, session_id: int, *, subject_id: Optional[int] = None) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_for_subject(self, subject_id: int) -> Sequence[AttendanceSession]:
        """Newest first (date, then time)."""

        raise NotImplementedError

    def set_token(
        self,
        *,
        session_id: int,
        subject_id: Optional[int],
        token: str,
        expires_at: datetime,
        late_after_minutes: int,
    ) -> bool:
        """Overwrite token/expiry/late policy. False when the session does not resolve."""

        raise NotImplementedError

    def replace(
        self,
        *,
        session_id: int,
        subject_id: int,
        session_date: date,
        session_time: Optional[time],
        is_visible: bool,
        roster: Optional[Sequence[RosterEntry]],
    ) -> bool:
        """Update metadata and, when roster is given, swap the whole ledger for it.

        False when the session does not resolve.
        """

        raise NotImplementedError

    def delete(self, *, session_id: int, subject_id: int) -> bool:
        """Delete the session and (cascade) its ledger rows."""

        raise NotImplementedError
