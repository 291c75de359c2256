from __future__ import annotations

import logging
from typing import Protocol

from ..leave.model import LeaveRequest

logger = logging.getLogger(__name__)


class LeaveNotifier(Protocol):
    """Fire-and-forget sender for leave workflow events.

    Implementations may fail; the workflow never depends on delivery.
    """

    def leave_submitted(self, request: LeaveRequest) -> None:
        raise NotImplementedError

    def leave_decided(self, request: LeaveRequest) -> None:
        raise NotImplementedError

    def leave_cancelled(self, request: LeaveRequest) -> None:
        raise NotImplementedError


class LoggingNotifier(LeaveNotifier):
    def leave_submitted(self, request: LeaveRequest) -> None:
        logger.info(
            "Leave submitted id=%s requester=%s type=%s %s..%s days=%s",
            request.request_id, request.requester_id, request.leave_type.value,
            request.from_date, request.to_date, request.total_days,
        )

    def leave_decided(self, request: LeaveRequest) -> None:
        logger.info("Leave %s id=%s by=%s", request.status.value.lower(), request.request_id, request.reviewed_by)

    def leave_cancelled(self, request: LeaveRequest) -> None:
        logger.info("Leave cancelled id=%s by=%s", request.request_id, request.cancelled_by)


def notify_quietly(notifier: LeaveNotifier, event: str, request: LeaveRequest) -> None:
    """Dispatch ``event`` and swallow delivery failures after logging them."""
    try:
        getattr(notifier, event)(request)
    except Exception:
        logger.exception("Notification %s failed for leave request %s", event, request.request_id)
