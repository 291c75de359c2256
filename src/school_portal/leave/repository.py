from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeavePriority, LeaveStatus, LeaveType
from .model import LeaveApplication, LeaveBalance, LeaveRequest


class LeaveRequestRepository(Protocol):
    def create(
        self,
        *,
        requester_id: int,
        application: LeaveApplication,
        total_days: float,
        created_at: datetime,
    ) -> LeaveRequest:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_active_for_requester(self, requester_id: int) -> Sequence[LeaveRequest]:
        """Pending and Approved requests; locks the rows when called inside a transaction."""

        raise NotImplementedError

    def list_requests(
        self,
        *,
        requester_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        priority: Optional[LeavePriority] = None,
        year: Optional[int] = None,
        limit: Optional[int] = 200,
    ) -> Sequence[LeaveRequest]:
        """Newest first. ``limit=None`` returns every match."""

        raise NotImplementedError

    def count_requests(self, *, requester_id: Optional[int] = None, status: Optional[LeaveStatus] = None) -> int:
        raise NotImplementedError

    def mark_decided(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_remark: Optional[str] = None,
    ) -> bool:
        """Compare-and-set from Pending; False when the request was no longer Pending."""

        raise NotImplementedError

    def mark_cancelled(
        self,
        *,
        request_id: int,
        cancelled_by: int,
        cancelled_at: datetime,
        cancellation_reason: str,
    ) -> bool:
        """Compare-and-set from Pending; False when the request was no longer Pending."""

        raise NotImplementedError


class LeaveBalanceRepository(Protocol):
    def find(self, *, requester_id: int, leave_type: LeaveType, cycle_year: int) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def get_or_create(
        self,
        *,
        requester_id: int,
        leave_type: LeaveType,
        cycle_year: int,
        default_total: float,
    ) -> LeaveBalance:
        raise NotImplementedError

    def has_entry(self, request_id: int) -> bool:
        raise NotImplementedError

    def add_used(
        self,
        *,
        requester_id: int,
        leave_type: LeaveType,
        cycle_year: int,
        days: float,
        request_id: Optional[int] = None,
    ) -> LeaveBalance:
        """Atomically add ``days`` (may be negative) to used, never below zero.

        A positive change with a request_id is recorded once; a negative change with a
        request_id removes that record.
        """

        raise NotImplementedError
