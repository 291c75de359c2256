from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used by the session guards."""

    ADMIN = "admin"
    TEACHER = "teacher"


class AttendanceStatus(str, Enum):
    """Daily attendance status stored per (student, date)."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"
    LATE = "late"


class LeaveType(str, Enum):
    SICK = "Sick"
    CASUAL = "Casual"
    EMERGENCY = "Emergency"
    MATERNITY = "Maternity"
    PATERNITY = "Paternity"
    BEREAVEMENT = "Bereavement"
    MEDICAL = "Medical"
    PERSONAL = "Personal"
    OTHER = "Other"


class LeaveSession(str, Enum):
    FIRST_HALF = "First Half"
    SECOND_HALF = "Second Half"
    FULL_DAY = "Full Day"


class LeavePriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class LeaveStatus(str, Enum):
    """Leave approval workflow state. Everything except PENDING is terminal."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LeaveStatus.PENDING


PRIORITY_RANK = {
    LeavePriority.URGENT: 0,
    LeavePriority.HIGH: 1,
    LeavePriority.MEDIUM: 2,
    LeavePriority.LOW: 3,
}
