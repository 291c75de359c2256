from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceAuditEntry, AttendanceRecord, NewAttendance


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_existing(self, *, student_ids: Sequence[int], attendance_date: date) -> Sequence[AttendanceRecord]:
        """Records already stored for any of the students on that date."""

        raise NotImplementedError

    def create_many(self, rows: Sequence[NewAttendance]) -> Sequence[AttendanceRecord]:
        """Insert all rows or none of them."""

        raise NotImplementedError

    def update_status(
        self,
        *,
        record_id: int,
        status: AttendanceStatus,
        reason: str,
        updated_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def add_audit_entry(self, entry: AttendanceAuditEntry) -> None:
        raise NotImplementedError

    def list_audit_entries(self, record_id: int) -> Sequence[AttendanceAuditEntry]:
        raise NotImplementedError

    def list_for_class_range(self, *, class_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_classes(
        self,
        *,
        class_ids: Sequence[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        """Records of several classes; open-ended when a bound is None."""

        raise NotImplementedError
