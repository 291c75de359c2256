from __future__ import annotations

import json
from datetime import date, datetime

import httpx

from school_portal.core.enums import LeavePriority, LeaveSession, LeaveStatus, LeaveType
from school_portal.leave.model import LeaveRequest
from school_portal.notifications.emailjs import EMAILJS_URL, EmailJSNotifier


def _request(**overrides) -> LeaveRequest:
    fields = dict(
        request_id=7,
        requester_id=10,
        leave_type=LeaveType.SICK,
        from_date=date(2026, 3, 10),
        to_date=date(2026, 3, 12),
        half_day=False,
        session=LeaveSession.FULL_DAY,
        total_days=3.0,
        reason="fever",
        priority=LeavePriority.HIGH,
        status=LeaveStatus.PENDING,
        created_at=datetime(2026, 3, 2, 9, 0),
        alternative_email="anita@example.com",
    )
    fields.update(overrides)
    return LeaveRequest(**fields)


def _notifier(handler, **overrides):
    kwargs = dict(
        service_id="svc",
        template_id="tpl",
        public_key="pub",
        private_key="priv",
        admin_email="office@example.com",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    kwargs.update(overrides)
    return EmailJSNotifier(**kwargs)


def test_submission_mails_the_office():
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, text="OK")

    _notifier(handler).leave_submitted(_request())

    ((url, payload),) = sent
    assert url == EMAILJS_URL
    assert payload["service_id"] == "svc"
    assert payload["user_id"] == "pub"
    assert payload["accessToken"] == "priv"
    assert payload["template_params"]["to_email"] == "office@example.com"
    assert "3 day(s)" in payload["template_params"]["message"]


def test_decision_mails_the_requester():
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200)

    _notifier(handler).leave_decided(_request(status=LeaveStatus.REJECTED, admin_remark="exam week"))

    (payload,) = sent
    params = payload["template_params"]
    assert params["to_email"] == "anita@example.com"
    assert "rejected" in params["subject"]
    assert "exam week" in params["message"]


def test_skips_without_credentials_or_recipient():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    _notifier(handler, private_key="").leave_submitted(_request())
    _notifier(handler).leave_decided(_request(alternative_email=None, status=LeaveStatus.APPROVED))

    assert calls == []


def test_http_failures_are_logged_not_raised(caplog):
    def rejecting(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="The user_id parameter is invalid")

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _notifier(rejecting).leave_cancelled(_request(status=LeaveStatus.CANCELLED, cancellation_reason="better"))
    _notifier(unreachable).leave_submitted(_request())

    messages = [r.getMessage() for r in caplog.records]
    assert any("EmailJS rejected" in m and "400" in m for m in messages)
    assert any("EmailJS request failed" in m for m in messages)
