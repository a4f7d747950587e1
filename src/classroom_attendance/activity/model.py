from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ActivityAction


@dataclass(frozen=True)
class ActivityEvent:
    """Audit side effect of a mutation; executed only after the mutation commits."""

    action: ActivityAction
    description: str
    user_id: Optional[int] = None
