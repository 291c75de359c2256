from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateAttendanceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceAuditEntry, AttendanceRecord, NewAttendance
from .repository import AttendanceRepository

_COLUMNS = """
    record_id, student_id, class_id, attendance_date, status,
    created_at, marked_by, updated_at, last_modified_reason
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        student_id=int(r["student_id"]),
        class_id=int(r["class_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        created_at=r["created_at"],
        marked_by=r.get("marked_by"),
        updated_at=r.get("updated_at"),
        last_modified_reason=r.get("last_modified_reason"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_existing(self, *, student_ids: Sequence[int], attendance_date: date) -> Sequence[AttendanceRecord]:
        if not student_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE attendance_date=%s AND student_id IN ({in_clause(student_ids)})
                """,
                (attendance_date, *[int(s) for s in student_ids]),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create_many(self, rows: Sequence[NewAttendance]) -> Sequence[AttendanceRecord]:
        try:
            return self._insert_all(rows)
        except mysql.connector.IntegrityError:
            raise DuplicateAttendanceError("Attendance already marked for this date")

    def _insert_all(self, rows: Sequence[NewAttendance]) -> Sequence[AttendanceRecord]:
        created: list[AttendanceRecord] = []
        # One cursor, one commit: a UNIQUE(student_id, attendance_date) violation rolls back every row.
        with db_cursor(self._conn_factory) as (_, cur):
            for row in rows:
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        student_id, class_id, attendance_date, status, marked_by, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(row.student_id),
                        int(row.class_id),
                        row.attendance_date,
                        row.status.value,
                        row.marked_by,
                        row.created_at,
                    ),
                )
                created.append(
                    AttendanceRecord(
                        record_id=int(cur.lastrowid),
                        student_id=row.student_id,
                        class_id=row.class_id,
                        attendance_date=row.attendance_date,
                        status=row.status,
                        created_at=row.created_at,
                        marked_by=row.marked_by,
                    )
                )
        return created

    def update_status(
        self,
        *,
        record_id: int,
        status: AttendanceStatus,
        reason: str,
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, last_modified_reason=%s, updated_at=%s
                WHERE record_id=%s
                """,
                (status.value, reason, updated_at, int(record_id)),
            )
            return cur.rowcount > 0

    def add_audit_entry(self, entry: AttendanceAuditEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_audit_logs(
                    record_id, old_status, new_status, reason, changed_by, changed_at, after_lock
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.record_id),
                    entry.old_status.value,
                    entry.new_status.value,
                    entry.reason,
                    entry.changed_by,
                    entry.changed_at,
                    1 if entry.after_lock else 0,
                ),
            )

    def list_audit_entries(self, record_id: int) -> Sequence[AttendanceAuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, old_status, new_status, reason, changed_by, changed_at, after_lock
                FROM attendance_audit_logs
                WHERE record_id=%s
                ORDER BY changed_at ASC, audit_id ASC
                """,
                (int(record_id),),
            )
            return [
                AttendanceAuditEntry(
                    record_id=int(r["record_id"]),
                    old_status=AttendanceStatus(r["old_status"]),
                    new_status=AttendanceStatus(r["new_status"]),
                    reason=r["reason"],
                    changed_at=r["changed_at"],
                    changed_by=r.get("changed_by"),
                    after_lock=bool(r.get("after_lock")),
                )
                for r in fetchall(cur)
            ]

    def list_for_class_range(self, *, class_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date DESC, student_id ASC
                """,
                (int(class_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_classes(
        self,
        *,
        class_ids: Sequence[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        if not class_ids:
            return []

        clauses = [f"class_id IN ({in_clause(class_ids)})"]
        params: list[object] = [int(c) for c in class_ids]
        if start_date is not None:
            clauses.append("attendance_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("attendance_date <= %s")
            params.append(end_date)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY attendance_date DESC, class_id ASC, student_id ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
