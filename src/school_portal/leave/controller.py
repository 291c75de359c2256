from __future__ import annotations

from flask import Flask, request

from ..common.http import (
    current_user_id,
    error_response,
    login_required,
    ok,
    role_required,
    server_error,
)
from ..common.validators import require_enum
from ..core.enums import LeavePriority, LeaveStatus, LeaveType, Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .service import parse_application


def register(app: Flask, container: Container) -> None:
    svc = container.leave_service

    def _optional_enum(enum_cls, arg: str, label: str):
        value = request.args.get(arg)
        return require_enum(enum_cls, value, label) if value else None

    def _optional_year():
        value = request.args.get("year")
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            raise ValidationError("year must be a number")

    @app.route("/api/leave/apply", methods=["POST"], endpoint="apply_leave")
    @role_required(Role.TEACHER)
    def apply_leave():
        body = request.get_json(silent=True) or request.form.to_dict()
        try:
            created = svc.submit(requester_id=current_user_id(), application=parse_application(body))
            warning = svc.quota_warning(created)
            extra = {"warning": warning} if warning else {}
            return ok(created, status=201, message="Leave application submitted successfully", **extra)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("submitting the leave application")

    @app.route("/api/leave/my", methods=["GET"], endpoint="my_leaves")
    @login_required
    def my_leaves():
        try:
            data = svc.list_for_requester(
                requester_id=current_user_id(),
                status=_optional_enum(LeaveStatus, "status", "status"),
                leave_type=_optional_enum(LeaveType, "leaveType", "leave type"),
                year=_optional_year(),
            )
            return ok(data["requests"], stats=data["stats"], balance=data["balance"])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading leave requests")

    @app.route("/api/leave/balance", methods=["GET"], endpoint="leave_balance")
    @login_required
    def leave_balance():
        try:
            return ok(container.leave_balance_service.get_balance(current_user_id(), year=_optional_year()))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading the leave balance")

    @app.route("/api/leave/<int:request_id>/cancel", methods=["PUT"], endpoint="cancel_leave")
    @login_required
    def cancel_leave(request_id: int):
        body = request.get_json(silent=True) or {}
        try:
            cancelled = svc.cancel(
                request_id=request_id,
                by_requester_id=current_user_id(),
                cancellation_reason=body.get("cancellationReason"),
            )
            return ok(cancelled, message="Leave cancelled successfully")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("cancelling the leave request")

    @app.route("/api/leave/<int:request_id>/decide", methods=["PUT"], endpoint="decide_leave")
    @role_required(Role.ADMIN)
    def decide_leave(request_id: int):
        body = request.get_json(silent=True) or {}
        try:
            decided = svc.decide(
                request_id=request_id,
                decision=body.get("decision", body.get("status")),
                reviewer_id=current_user_id(),
                admin_remark=body.get("adminRemark"),
            )
            return ok(decided, message=f"Leave {decided.status.value.lower()} successfully")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("reviewing the leave request")

    @app.route("/api/admin/leave", methods=["GET"], endpoint="admin_leaves")
    @role_required(Role.ADMIN)
    def admin_leaves():
        try:
            data = svc.list_all(
                status=_optional_enum(LeaveStatus, "status", "status"),
                leave_type=_optional_enum(LeaveType, "leaveType", "leave type"),
                priority=_optional_enum(LeavePriority, "priority", "priority"),
            )
            return ok(data["requests"], stats=data["stats"], count=data["count"])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading leave requests")

    @app.route("/api/admin/leave/analytics", methods=["GET"], endpoint="leave_analytics")
    @role_required(Role.ADMIN)
    def leave_analytics():
        try:
            return ok(svc.analytics(year=_optional_year()))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("building leave analytics")
