from __future__ import annotations

from typing import Dict, Iterable, Protocol, Sequence


class EnrollmentDirectory(Protocol):
    """Read-only view of the LMS enrollment relation (owned elsewhere)."""

    def is_enrolled(self, subject_id: int, student_id: int) -> bool:
        raise NotImplementedError

    def list_students(self, subject_id: int) -> Sequence[int]:
        raise NotImplementedError

    def count_students(self, subject_id: int) -> int:
        raise NotImplementedError

    def subjects_for_student(self, student_id: int) -> Sequence[int]:
        raise NotImplementedError


class UserDirectory(Protocol):
    """Display names for reporting only; never consulted by check-in rules."""

    def display_names(self, user_ids: Iterable[int]) -> Dict[int, str]:
        raise NotImplementedError
