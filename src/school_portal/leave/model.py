from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeavePriority, LeaveSession, LeaveStatus, LeaveType


def compute_total_days(from_date: date, to_date: date, half_day: bool) -> float:
    """Inclusive calendar days between the two dates, less half a day for half-day leave."""
    days = float((to_date - from_date).days + 1)
    return days - 0.5 if half_day else days


def ranges_overlap(a_from: date, a_to: date, b_from: date, b_to: date) -> bool:
    """Inclusive intersection test; a shared boundary day counts as overlap."""
    return a_from <= b_to and a_to >= b_from


@dataclass(frozen=True)
class LeaveApplication:
    """Validated input of a leave submission.

    Optional contact fields default to None and are never sent as empty strings.
    """

    leave_type: LeaveType
    from_date: date
    to_date: date
    reason: str
    half_day: bool = False
    session: Optional[LeaveSession] = None
    priority: LeavePriority = LeavePriority.MEDIUM
    contact_number: Optional[str] = None
    alternative_email: Optional[str] = None
    attachment_ref: Optional[str] = None

    @property
    def total_days(self) -> float:
        return compute_total_days(self.from_date, self.to_date, self.half_day)


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    requester_id: int
    leave_type: LeaveType
    from_date: date
    to_date: date
    half_day: bool
    session: LeaveSession
    total_days: float
    reason: str
    priority: LeavePriority
    status: LeaveStatus
    created_at: datetime
    contact_number: Optional[str] = None
    alternative_email: Optional[str] = None
    attachment_ref: Optional[str] = None
    admin_remark: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    @property
    def cycle_year(self) -> int:
        return self.from_date.year


@dataclass(frozen=True)
class LeaveBalance:
    """Quota of one leave type for one requester in one yearly cycle."""

    requester_id: int
    leave_type: LeaveType
    cycle_year: int
    total: float
    used: float = 0.0

    @property
    def available(self) -> float:
        return self.total - self.used

    def as_dict(self) -> dict:
        return {"total": self.total, "used": self.used, "available": self.available}
