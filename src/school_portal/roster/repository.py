from __future__ import annotations

from typing import Protocol, Sequence

from .model import SchoolClass, Student


class RosterRepository(Protocol):
    """Read-side of the class roster.

    Note: the ledger references students and classes, it never owns or duplicates them.
    """

    def list_classes_for_teacher(self, teacher_id: int) -> Sequence[SchoolClass]:
        raise NotImplementedError

    def list_all_classes(self) -> Sequence[SchoolClass]:
        raise NotImplementedError

    def list_students(self, class_id: int) -> Sequence[Student]:
        """Active students of a class ordered by roll number."""

        raise NotImplementedError

    def count_students(self, class_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def get_students(self, student_ids: Sequence[int]) -> Sequence[Student]:
        raise NotImplementedError
