from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Ledger status of one student in one session."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    EXCUSED = "excused"


# Statuses the self-service path may overwrite.
UPGRADABLE_STATUSES = frozenset({AttendanceStatus.ABSENT})


class ActivityAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MINT = "mint"
    CHECKIN = "checkin"
