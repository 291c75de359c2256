from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.clock import Clock, SystemClock
from ..core.constants import DEFAULT_WEAK_STUDENT_DAYS, WEAK_ATTENDANCE_THRESHOLD
from ..core.enums import AttendanceStatus
from ..leave.service import LeaveRequestService
from ..roster.repository import RosterRepository
from .analytics import AttendanceAnalytics, LedgerAttendanceAnalytics


@dataclass(frozen=True)
class TeacherDashboard:
    total_classes: int
    total_students: int
    attendance_marked_today: int
    pending_attendance: int
    today_attendance_percentage: float
    absent_today: int
    weak_students_count: int
    pending_leave_requests: int


class DashboardService:
    """Read-only summary for a teacher's home page. Never writes."""

    def __init__(
        self,
        roster: RosterRepository,
        attendance: AttendanceRepository,
        leaves: LeaveRequestService,
        *,
        analytics: Optional[AttendanceAnalytics] = None,
        clock: Optional[Clock] = None,
        weak_threshold: float = WEAK_ATTENDANCE_THRESHOLD,
    ):
        self._roster = roster
        self._attendance = attendance
        self._leaves = leaves
        self._analytics = analytics or LedgerAttendanceAnalytics(attendance)
        self._clock = clock or SystemClock()
        self._weak_threshold = float(weak_threshold)

    def teacher_dashboard(self, teacher_id: int, *, on_date: Optional[date] = None) -> TeacherDashboard:
        day = on_date or self._clock.today()
        classes = self._roster.list_classes_for_teacher(int(teacher_id))
        class_ids = [c.class_id for c in classes]

        today_records = self._attendance.list_for_classes(class_ids=class_ids, start_date=day, end_date=day)
        marked_class_ids = {r.class_id for r in today_records}
        present = sum(1 for r in today_records if r.status == AttendanceStatus.PRESENT)
        absent = sum(1 for r in today_records if r.status == AttendanceStatus.ABSENT)
        percentage = round(present * 100.0 / len(today_records), 2) if today_records else 0.0

        percentages = self._analytics.student_percentages(class_ids=class_ids) if class_ids else {}
        weak = sum(1 for p in percentages.values() if p < self._weak_threshold)

        return TeacherDashboard(
            total_classes=len(classes),
            total_students=self._roster.count_students(class_ids),
            attendance_marked_today=len(marked_class_ids),
            pending_attendance=len([c for c in class_ids if c not in marked_class_ids]),
            today_attendance_percentage=percentage,
            absent_today=absent,
            weak_students_count=weak,
            pending_leave_requests=self._leaves.count_pending(int(teacher_id)),
        )

    def weak_students(self, teacher_id: int, *, days: int = DEFAULT_WEAK_STUDENT_DAYS) -> list[dict]:
        """Students under the threshold over the trailing ``days``, weakest first."""
        class_ids = [c.class_id for c in self._roster.list_classes_for_teacher(int(teacher_id))]
        if not class_ids:
            return []

        today = self._clock.today()
        percentages = self._analytics.student_percentages(
            class_ids=class_ids, since=today - timedelta(days=int(days)), until=today
        )
        weak_ids = [sid for sid, p in percentages.items() if p < self._weak_threshold]
        students = {s.student_id: s for s in self._roster.get_students(weak_ids)}

        out = []
        for sid in weak_ids:
            s = students.get(sid)
            out.append(
                {
                    "studentId": sid,
                    "name": s.full_name if s else "",
                    "rollNumber": s.roll_number if s else "",
                    "classId": s.class_id if s else None,
                    "percentage": percentages[sid],
                }
            )
        out.sort(key=lambda x: x["percentage"])
        return out
