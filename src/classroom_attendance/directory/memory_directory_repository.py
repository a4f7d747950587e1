from __future__ import annotations

from typing import Dict, Iterable, Sequence

from ..database.memory_base import MemoryDatabase
from .repository import EnrollmentDirectory, UserDirectory


class MemoryEnrollmentDirectory(EnrollmentDirectory):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def is_enrolled(self, subject_id: int, student_id: int) -> bool:
        with self._db.transaction() as db:
            return int(student_id) in db.enrollments.get(int(subject_id), set())

    def list_students(self, subject_id: int) -> Sequence[int]:
        with self._db.transaction() as db:
            return sorted(db.enrollments.get(int(subject_id), set()))

    def count_students(self, subject_id: int) -> int:
        return len(self.list_students(subject_id))

    def subjects_for_student(self, student_id: int) -> Sequence[int]:
        with self._db.transaction() as db:
            return sorted(s for s, students in db.enrollments.items() if int(student_id) in students)


class MemoryUserDirectory(UserDirectory):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def display_names(self, user_ids: Iterable[int]) -> Dict[int, str]:
        with self._db.transaction() as db:
            return {int(u): db.display_names.get(int(u), f"user-{int(u)}") for u in user_ids}
