from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from ..core.enums import AttendanceStatus


def attendance_rate(attended: int, total: int) -> int:
    """round(100 * attended / total), half-up, 0 for an empty set."""

    if total <= 0:
        return 0
    attended = max(int(attended), 0)
    # integer half-up rounding: floor(100*a/t + 1/2)
    return (200 * attended + total) // (2 * total)


@dataclass(frozen=True)
class AttendanceSummary:
    present: int = 0
    late: int = 0
    absent: int = 0
    excused: int = 0

    @property
    def total(self) -> int:
        return self.present + self.late + self.absent + self.excused

    @property
    def attended(self) -> int:
        # present + late count as "attended" everywhere a rate is shown
        return self.present + self.late

    @property
    def attendance_rate(self) -> int:
        return attendance_rate(self.attended, self.total)

    def __add__(self, other: "AttendanceSummary") -> "AttendanceSummary":
        return AttendanceSummary(
            present=self.present + other.present,
            late=self.late + other.late,
            absent=self.absent + other.absent,
            excused=self.excused + other.excused,
        )

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "excused": self.excused,
            "total": self.total,
            "attended": self.attended,
            "attendanceRate": self.attendance_rate,
        }


def summarize_counts(counts: Mapping[AttendanceStatus, int]) -> AttendanceSummary:
    return AttendanceSummary(
        present=int(counts.get(AttendanceStatus.PRESENT, 0)),
        late=int(counts.get(AttendanceStatus.LATE, 0)),
        absent=int(counts.get(AttendanceStatus.ABSENT, 0)),
        excused=int(counts.get(AttendanceStatus.EXCUSED, 0)),
    )


def summarize(statuses: Iterable[Optional[AttendanceStatus]]) -> AttendanceSummary:
    """Count statuses; a missing status (no ledger row) counts as absent."""

    counts = Counter(s if s is not None else AttendanceStatus.ABSENT for s in statuses)
    return summarize_counts(counts)
