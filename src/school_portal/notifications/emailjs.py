from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..leave.model import LeaveRequest
from .notifier import LeaveNotifier

logger = logging.getLogger(__name__)

EMAILJS_URL = "https://api.emailjs.com/api/v1.0/email/send"


class EmailJSNotifier(LeaveNotifier):
    """Sends leave workflow emails through the EmailJS REST API.

    Submissions go to the administrators' mailbox; decisions and cancellations go to
    the requester's alternative email when one was given.
    """

    def __init__(
        self,
        *,
        service_id: str,
        template_id: str,
        public_key: str,
        private_key: str,
        admin_email: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._service_id = service_id
        self._template_id = template_id
        self._public_key = public_key
        self._private_key = private_key
        self._admin_email = admin_email
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def configured(self) -> bool:
        return bool(self._service_id and self._template_id and self._public_key and self._private_key)

    def _send(self, to_email: Optional[str], subject: str, message: str) -> None:
        if not self.configured:
            logger.info("EmailJS credentials not configured. Skipping email %r", subject)
            return
        if not to_email:
            logger.info("No recipient for email %r. Skipping", subject)
            return

        payload = {
            "service_id": self._service_id,
            "template_id": self._template_id,
            "user_id": self._public_key,
            "accessToken": self._private_key,
            "template_params": {
                "to_email": to_email,
                "subject": subject,
                "message": message,
            },
        }
        try:
            response = self._client.post(EMAILJS_URL, json=payload)
            response.raise_for_status()
            logger.info("Email %r sent to %s", subject, to_email)
        except httpx.HTTPStatusError as e:
            logger.error("EmailJS rejected %r for %s: %s %s", subject, to_email, e.response.status_code, e.response.text)
        except httpx.HTTPError as e:
            logger.error("EmailJS request failed for %s: %s", to_email, e)

    def leave_submitted(self, request: LeaveRequest) -> None:
        self._send(
            self._admin_email,
            f"New {request.leave_type.value} leave request #{request.request_id}",
            (
                f"Requester {request.requester_id} applied for {request.total_days:g} day(s) "
                f"from {request.from_date:%Y-%m-%d} to {request.to_date:%Y-%m-%d} "
                f"({request.priority.value} priority). Reason: {request.reason}"
            ),
        )

    def leave_decided(self, request: LeaveRequest) -> None:
        remark = f" Remark: {request.admin_remark}" if request.admin_remark else ""
        self._send(
            request.alternative_email,
            f"Your leave request #{request.request_id} was {request.status.value.lower()}",
            f"{request.leave_type.value} leave {request.from_date:%Y-%m-%d} to {request.to_date:%Y-%m-%d}.{remark}",
        )

    def leave_cancelled(self, request: LeaveRequest) -> None:
        self._send(
            self._admin_email,
            f"Leave request #{request.request_id} cancelled",
            f"Requester {request.requester_id} cancelled: {request.cancellation_reason}",
        )
