from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Domain entity: a student on a class roster.

    Attendance percentage is derived by the analytics collaborator, never stored here.
    """

    student_id: int
    roll_number: str
    class_id: int
    full_name: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class SchoolClass:
    class_id: int
    class_name: str
    section: str = ""
    teacher_id: Optional[int] = None
