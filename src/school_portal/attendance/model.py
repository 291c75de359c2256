from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for one day.

    Exactly one record exists per (student_id, attendance_date). Corrections update the
    record in place and leave ``created_at`` untouched.
    """

    record_id: int
    student_id: int
    class_id: int
    attendance_date: date
    status: AttendanceStatus
    created_at: datetime
    marked_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    last_modified_reason: Optional[str] = None


@dataclass(frozen=True)
class NewAttendance:
    """Row to insert; ids are assigned by the store."""

    student_id: int
    class_id: int
    attendance_date: date
    status: AttendanceStatus
    created_at: datetime
    marked_by: Optional[int] = None


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: int
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceAuditEntry:
    record_id: int
    old_status: AttendanceStatus
    new_status: AttendanceStatus
    reason: str
    changed_at: datetime
    changed_by: Optional[int] = None
    after_lock: bool = False


@dataclass(frozen=True)
class AttendanceView:
    """Read-model for display: the record plus its derived lock flag."""

    record: AttendanceRecord
    locked: bool
