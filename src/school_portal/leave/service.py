from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import replace
from typing import Mapping, Optional

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import require_iso_date
from ..common.validators import (
    optional_email,
    optional_text,
    parse_bool,
    require_enum,
    require_max_length,
    require_non_empty,
)
from ..core.constants import DEFAULT_LIST_LIMIT, MAX_REASON_LENGTH, QUOTA_POLICY_ENFORCE, QUOTA_POLICY_WARN
from ..core.enums import PRIORITY_RANK, LeavePriority, LeaveSession, LeaveStatus, LeaveType
from ..core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from ..database.transactions import TransactionManager, or_no_transaction
from ..notifications.notifier import LeaveNotifier, LoggingNotifier, notify_quietly
from .balance import LeaveBalanceService
from .model import LeaveApplication, LeaveRequest, compute_total_days, ranges_overlap
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)

HALF_DAY_SESSIONS = {LeaveSession.FIRST_HALF, LeaveSession.SECOND_HALF}
DECISIONS = {LeaveStatus.APPROVED, LeaveStatus.REJECTED}
TOP_APPLICANTS = 10


def _totals(requests, key) -> dict:
    out: dict = defaultdict(lambda: {"count": 0, "totalDays": 0.0})
    for r in requests:
        out[key(r)]["count"] += 1
        out[key(r)]["totalDays"] += r.total_days
    return dict(out)



def parse_application(raw: Mapping) -> LeaveApplication:
    """Build a LeaveApplication from a request body using the API's camelCase keys."""

    session_raw = optional_text(raw.get("session"))
    priority_raw = optional_text(raw.get("priority"))
    return LeaveApplication(
        leave_type=require_enum(LeaveType, raw.get("leaveType"), "leave type"),
        from_date=require_iso_date(raw.get("fromDate"), "fromDate"),
        to_date=require_iso_date(raw.get("toDate"), "toDate"),
        reason=str(raw.get("reason") or ""),
        half_day=parse_bool(raw.get("halfDay")),
        session=require_enum(LeaveSession, session_raw, "session") if session_raw else None,
        priority=require_enum(LeavePriority, priority_raw, "priority") if priority_raw else LeavePriority.MEDIUM,
        contact_number=optional_text(raw.get("contactNumber")),
        alternative_email=optional_text(raw.get("alternativeEmail")),
        attachment_ref=optional_text(raw.get("attachment")),
    )


class LeaveRequestService:
    """Leave application workflow: Pending -> Approved | Rejected | Cancelled.

    Terminal states never change again. Balance is reserved exactly once, when a request
    is approved.
    """

    def __init__(
        self,
        requests: LeaveRequestRepository,
        balances: LeaveBalanceService,
        *,
        clock: Optional[Clock] = None,
        notifier: Optional[LeaveNotifier] = None,
        transactions: Optional[TransactionManager] = None,
        quota_policy: str = QUOTA_POLICY_WARN,
    ):
        if quota_policy not in {QUOTA_POLICY_WARN, QUOTA_POLICY_ENFORCE}:
            raise ValueError(f"Unknown leave quota policy: {quota_policy!r}")
        self._requests = requests
        self._balances = balances
        self._clock = clock or SystemClock()
        self._notifier = notifier or LoggingNotifier()
        self._tx = or_no_transaction(transactions)
        self._quota_policy = quota_policy

    def _normalize(self, application: LeaveApplication) -> LeaveApplication:
        a = replace(
            application,
            leave_type=require_enum(LeaveType, application.leave_type, "leave type"),
            priority=require_enum(LeavePriority, application.priority or LeavePriority.MEDIUM, "priority"),
            session=require_enum(LeaveSession, application.session, "session") if application.session else None,
        )
        if a.from_date > a.to_date:
            raise ValidationError("Invalid date range: fromDate must be on or before toDate")
        if a.from_date < self._clock.today():
            raise ValidationError("Cannot apply for past dates")

        reason = require_max_length(require_non_empty(a.reason, "Reason"), "Reason", MAX_REASON_LENGTH)

        if a.half_day:
            if a.session not in HALF_DAY_SESSIONS:
                raise ValidationError("Half-day leave needs a session (First Half or Second Half)")
            session = a.session
        else:
            session = LeaveSession.FULL_DAY

        return replace(
            a,
            reason=reason,
            session=session,
            contact_number=optional_text(a.contact_number),
            alternative_email=optional_email(a.alternative_email, "Alternative email"),
            attachment_ref=optional_text(a.attachment_ref),
        )

    def quota_warning(self, request: LeaveRequest) -> Optional[str]:
        available = self._balances.available(request.requester_id, request.leave_type, year=request.cycle_year)
        if available is not None and request.total_days > available:
            return f"Insufficient {request.leave_type.value} leave balance. Available: {available:g} days"
        return None

    def submit(self, *, requester_id: int, application: LeaveApplication) -> LeaveRequest:
        a = self._normalize(application)
        total_days = compute_total_days(a.from_date, a.to_date, a.half_day)

        if self._quota_policy == QUOTA_POLICY_ENFORCE:
            available = self._balances.available(requester_id, a.leave_type, year=a.from_date.year)
            if available is not None and total_days > available:
                raise ValidationError(
                    f"Insufficient {a.leave_type.value} leave balance. Available: {available:g} days"
                )

        with self._tx.atomic():
            for existing in self._requests.list_active_for_requester(int(requester_id)):
                if ranges_overlap(a.from_date, a.to_date, existing.from_date, existing.to_date):
                    raise ConflictError(
                        "You already have a leave request during this period "
                        f"(#{existing.request_id}, {existing.from_date:%Y-%m-%d} to {existing.to_date:%Y-%m-%d})"
                    )
            created = self._requests.create(
                requester_id=int(requester_id),
                application=a,
                total_days=total_days,
                created_at=self._clock.now(),
            )

        warning = self.quota_warning(created)
        if warning:
            logger.warning("Leave request %s submitted over quota: %s", created.request_id, warning)
        notify_quietly(self._notifier, "leave_submitted", created)
        return created

    def cancel(self, *, request_id: int, by_requester_id: int, cancellation_reason: Optional[str]) -> LeaveRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        if req.requester_id != int(by_requester_id):
            raise StateError("Only the requester can cancel this leave request")
        if req.status != LeaveStatus.PENDING:
            raise StateError("Can only cancel pending leaves")

        reason = require_max_length(
            require_non_empty(cancellation_reason, "Cancellation reason"), "Cancellation reason", MAX_REASON_LENGTH
        )

        now = self._clock.now()
        if not self._requests.mark_cancelled(
            request_id=req.request_id,
            cancelled_by=int(by_requester_id),
            cancelled_at=now,
            cancellation_reason=reason,
        ):
            raise StateError("Can only cancel pending leaves")

        cancelled = replace(
            req,
            status=LeaveStatus.CANCELLED,
            cancelled_by=int(by_requester_id),
            cancelled_at=now,
            cancellation_reason=reason,
        )
        notify_quietly(self._notifier, "leave_cancelled", cancelled)
        return cancelled

    def decide(
        self,
        *,
        request_id: int,
        decision,
        reviewer_id: int,
        admin_remark: Optional[str] = None,
    ) -> LeaveRequest:
        """Apply an administrator's decision.

        Authorization is the caller's job; this only enforces the state machine and the
        balance contract.
        """

        status = require_enum(LeaveStatus, decision, "decision")
        if status not in DECISIONS:
            raise ValidationError("Decision must be Approved or Rejected")
        remark = optional_text(admin_remark)
        if remark:
            require_max_length(remark, "Admin remark", MAX_REASON_LENGTH)
        if status == LeaveStatus.REJECTED and not remark:
            raise ValidationError("Remark required for rejection")

        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        if req.status != LeaveStatus.PENDING:
            raise StateError("Can only update pending leaves")

        now = self._clock.now()
        with self._tx.atomic():
            if not self._requests.mark_decided(
                request_id=req.request_id,
                status=status,
                reviewed_by=int(reviewer_id),
                reviewed_at=now,
                admin_remark=remark,
            ):
                raise StateError("Can only update pending leaves")
            if status == LeaveStatus.APPROVED:
                self._balances.reserve(
                    req.requester_id,
                    req.leave_type,
                    req.total_days,
                    request_id=req.request_id,
                    year=req.cycle_year,
                )

        decided = replace(req, status=status, reviewed_by=int(reviewer_id), reviewed_at=now, admin_remark=remark)
        logger.info("Leave request %s %s by %s", req.request_id, status.value.lower(), reviewer_id)
        notify_quietly(self._notifier, "leave_decided", decided)
        return decided

    def get(self, request_id: int) -> LeaveRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        return req

    def list_for_requester(
        self,
        *,
        requester_id: int,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        year: Optional[int] = None,
    ) -> dict:
        requests = list(
            self._requests.list_requests(
                requester_id=int(requester_id),
                status=status,
                leave_type=leave_type,
                year=year,
                limit=DEFAULT_LIST_LIMIT,
            )
        )
        counts = Counter(r.status for r in requests)
        return {
            "requests": requests,
            "stats": {
                "total": len(requests),
                "pending": counts.get(LeaveStatus.PENDING, 0),
                "approved": counts.get(LeaveStatus.APPROVED, 0),
                "rejected": counts.get(LeaveStatus.REJECTED, 0),
                "cancelled": counts.get(LeaveStatus.CANCELLED, 0),
            },
            "balance": self._balances.get_balance(int(requester_id), year=year),
        }

    def count_pending(self, requester_id: int) -> int:
        return self._requests.count_requests(requester_id=int(requester_id), status=LeaveStatus.PENDING)

    def list_all(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        priority: Optional[LeavePriority] = None,
        limit: int = 500,
    ) -> dict:
        requests = list(
            self._requests.list_requests(status=status, leave_type=leave_type, priority=priority, limit=limit)
        )
        # Stable sorts: newest first, then most urgent first.
        requests.sort(key=lambda r: r.created_at, reverse=True)
        requests.sort(key=lambda r: PRIORITY_RANK[r.priority])

        return {
            "requests": requests,
            "stats": {
                "byStatus": _totals(requests, lambda r: r.status.value),
                "byType": _totals(requests, lambda r: r.leave_type.value),
            },
            "count": len(requests),
        }

    def analytics(self, *, year: Optional[int] = None) -> dict:
        """Leave totals for one calendar year of fromDate; defaults to the current year."""
        year = int(year) if year else self._clock.today().year
        requests = list(self._requests.list_requests(year=year, limit=None))

        monthly = _totals(requests, lambda r: r.from_date.month)
        by_requester: dict = defaultdict(lambda: {"totalLeaves": 0, "totalDays": 0.0})
        for r in requests:
            if r.status == LeaveStatus.APPROVED:
                by_requester[r.requester_id]["totalLeaves"] += 1
                by_requester[r.requester_id]["totalDays"] += r.total_days
        top = sorted(by_requester.items(), key=lambda kv: (-kv[1]["totalDays"], kv[0]))[:TOP_APPLICANTS]

        return {
            "year": year,
            "byStatus": _totals(requests, lambda r: r.status.value),
            "byType": _totals(requests, lambda r: r.leave_type.value),
            "monthly": [{"month": m, **monthly[m]} for m in sorted(monthly)],
            "topApplicants": [{"requesterId": rid, **stats} for rid, stats in top],
        }
