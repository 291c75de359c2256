from __future__ import annotations

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Iterable, Mapping, Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import hours_between, start_of_day
from ..common.validators import require_enum, require_non_empty, require_max_length
from ..core.constants import ATTENDANCE_LOCK_HOURS, MAX_REASON_LENGTH
from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateAttendanceError, NotFoundError, ValidationError
from ..database.transactions import TransactionManager, or_no_transaction
from ..roster.repository import RosterRepository
from .drafts import AttendanceDraftStore, InMemoryDraftStore
from .model import AttendanceAuditEntry, AttendanceEntry, AttendanceRecord, AttendanceView, NewAttendance
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_entries(raw: Iterable[Mapping]) -> list[AttendanceEntry]:
    """Turn request rows ``{studentId, status}`` into typed entries."""

    entries: list[AttendanceEntry] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ValidationError("Invalid attendance data")
        try:
            student_id = int(item.get("studentId", item.get("student_id")))
        except (TypeError, ValueError):
            raise ValidationError("Each attendance entry needs a numeric studentId")
        status = require_enum(AttendanceStatus, item.get("status"), "attendance status")
        entries.append(AttendanceEntry(student_id=student_id, status=status))
    return entries


class AttendanceService:
    """Daily attendance ledger of a class.

    One record per (student, date). Records are editable freely for ``lock_hours``
    after creation; every correction carries a reason which is kept in the audit trail.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        *,
        clock: Optional[Clock] = None,
        drafts: Optional[AttendanceDraftStore] = None,
        transactions: Optional[TransactionManager] = None,
        lock_hours: int = ATTENDANCE_LOCK_HOURS,
    ):
        self._attendance = attendance
        self._roster = roster
        self._clock = clock or SystemClock()
        self._drafts = drafts or InMemoryDraftStore()
        self._tx = or_no_transaction(transactions)
        self._lock_hours = int(lock_hours)

    @property
    def drafts(self) -> AttendanceDraftStore:
        return self._drafts

    def mark_attendance(
        self,
        *,
        class_id: int,
        attendance_date: date,
        entries: Sequence[AttendanceEntry],
        marked_by: Optional[int] = None,
    ) -> list[AttendanceRecord]:
        if attendance_date > self._clock.today():
            raise ValidationError("Cannot mark attendance for a future date")

        entries = [
            AttendanceEntry(
                student_id=int(e.student_id),
                status=require_enum(AttendanceStatus, e.status, "attendance status"),
            )
            for e in entries
        ]

        roster = self._roster.list_students(int(class_id))
        if not roster:
            return []

        roster_ids = {s.student_id for s in roster}
        seen: set[int] = set()
        for e in entries:
            if e.student_id in seen:
                raise ValidationError(f"Student {e.student_id} appears more than once")
            if e.student_id not in roster_ids:
                raise ValidationError(f"Student {e.student_id} is not on the roster of this class")
            seen.add(e.student_id)

        missing = roster_ids - seen
        if missing:
            raise ValidationError(
                f"Attendance missing for {len(missing)} student(s): {', '.join(str(i) for i in sorted(missing))}"
            )

        now = self._clock.now()
        rows = [
            NewAttendance(
                student_id=e.student_id,
                class_id=int(class_id),
                attendance_date=attendance_date,
                status=e.status,
                created_at=now,
                marked_by=marked_by,
            )
            for e in entries
        ]

        with self._tx.atomic():
            existing = self._attendance.find_existing(student_ids=sorted(seen), attendance_date=attendance_date)
            if existing:
                raise DuplicateAttendanceError(
                    "Attendance already marked for this date; use update_attendance to correct a record"
                )
            created = list(self._attendance.create_many(rows))

        self._drafts.clear(int(class_id), attendance_date)
        logger.info(
            "Marked attendance class=%s date=%s records=%d by=%s", class_id, attendance_date, len(created), marked_by
        )
        return created

    def update_attendance(
        self,
        *,
        record_id: int,
        new_status,
        reason: Optional[str],
        changed_by: Optional[int] = None,
    ) -> AttendanceRecord:
        reason = require_max_length(require_non_empty(reason, "Reason"), "Reason", MAX_REASON_LENGTH)
        status = require_enum(AttendanceStatus, new_status, "attendance status")

        record = self._attendance.get_by_id(int(record_id))
        if not record:
            raise NotFoundError("Attendance record not found")

        now = self._clock.now()
        # Past the lock window the reason is what authorises the change.
        after_lock = hours_between(record.created_at, now) > self._lock_hours

        with self._tx.atomic():
            if not self._attendance.update_status(record_id=record.record_id, status=status, reason=reason, updated_at=now):
                raise NotFoundError("Attendance record not found")
            self._attendance.add_audit_entry(
                AttendanceAuditEntry(
                    record_id=record.record_id,
                    old_status=record.status,
                    new_status=status,
                    reason=reason,
                    changed_at=now,
                    changed_by=changed_by,
                    after_lock=after_lock,
                )
            )

        self._drafts.clear(record.class_id, record.attendance_date)
        if after_lock:
            logger.warning(
                "Late attendance correction record=%s %s->%s by=%s reason=%r",
                record.record_id, record.status.value, status.value, changed_by, reason,
            )

        return AttendanceRecord(
            record_id=record.record_id,
            student_id=record.student_id,
            class_id=record.class_id,
            attendance_date=record.attendance_date,
            status=status,
            created_at=record.created_at,
            marked_by=record.marked_by,
            updated_at=now,
            last_modified_reason=reason,
        )

    def get_by_class_and_range(self, *, class_id: int, start_date: date, end_date: date) -> list[AttendanceView]:
        if start_date > end_date:
            raise ValidationError("startDate must be on or before endDate")

        records = self._attendance.list_for_class_range(class_id=int(class_id), start_date=start_date, end_date=end_date)
        return [AttendanceView(record=r, locked=self.is_locked(r)) for r in records]

    def is_locked(self, record: AttendanceRecord) -> bool:
        return hours_between(start_of_day(record.attendance_date), self._clock.now()) > self._lock_hours

    def get_audit_trail(self, record_id: int) -> list[AttendanceAuditEntry]:
        if not self._attendance.get_by_id(int(record_id)):
            raise NotFoundError("Attendance record not found")
        return list(self._attendance.list_audit_entries(int(record_id)))

    def status_summary(
        self,
        *,
        class_ids: Sequence[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict:
        records = self._attendance.list_for_classes(class_ids=class_ids, start_date=start_date, end_date=end_date)
        counts = Counter(r.status for r in records)
        stats = {s.value: int(counts.get(s, 0)) for s in AttendanceStatus}
        return {"stats": stats, "total": sum(stats.values())}

    def save_draft(self, *, class_id: int, attendance_date: date, entries: Sequence[AttendanceEntry]) -> None:
        self._drafts.save(int(class_id), attendance_date, {e.student_id: e.status for e in entries})

    def get_draft(self, *, class_id: int, attendance_date: date) -> Optional[dict]:
        return self._drafts.get(int(class_id), attendance_date)

    def discard_draft(self, *, class_id: int, attendance_date: date) -> None:
        self._drafts.clear(int(class_id), attendance_date)

    def default_report_range(self, days: int = 30) -> tuple[date, date]:
        today = self._clock.today()
        return today - timedelta(days=days), today
