from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import SchoolClass, Student
from .repository import RosterRepository


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        roll_number=str(r["roll_number"]),
        class_id=int(r["class_id"]),
        full_name=r.get("full_name") or "",
        is_active=bool(r.get("is_active", True)),
    )


def _to_class(r: dict) -> SchoolClass:
    return SchoolClass(
        class_id=int(r["class_id"]),
        class_name=r["class_name"],
        section=r.get("section") or "",
        teacher_id=r.get("teacher_id"),
    )


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_classes_for_teacher(self, teacher_id: int) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, class_name, section, teacher_id
                FROM classes
                WHERE teacher_id=%s
                ORDER BY class_name, section
                """,
                (int(teacher_id),),
            )
            return [_to_class(r) for r in fetchall(cur)]

    def list_all_classes(self) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT class_id, class_name, section, teacher_id FROM classes ORDER BY class_name, section")
            return [_to_class(r) for r in fetchall(cur)]

    def list_students(self, class_id: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, roll_number, class_id, full_name, is_active
                FROM students
                WHERE class_id=%s AND is_active=1
                ORDER BY CAST(roll_number AS UNSIGNED), roll_number
                """,
                (int(class_id),),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def count_students(self, class_ids: Sequence[int]) -> int:
        if not class_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS n FROM students WHERE is_active=1 AND class_id IN ({in_clause(class_ids)})",
                tuple(int(c) for c in class_ids),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def get_students(self, student_ids: Sequence[int]) -> Sequence[Student]:
        if not student_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, roll_number, class_id, full_name, is_active
                FROM students
                WHERE student_id IN ({in_clause(student_ids)})
                """,
                tuple(int(s) for s in student_ids),
            )
            return [_to_student(r) for r in fetchall(cur)]
