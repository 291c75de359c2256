from __future__ import annotations

from flask import Flask, request

from ..common.http import current_user_id, error_response, ok, role_required, server_error
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/teacher/dashboard", methods=["GET"], endpoint="teacher_dashboard")
    @role_required(Role.TEACHER)
    def teacher_dashboard():
        try:
            return ok({"stats": container.dashboard_service.teacher_dashboard(current_user_id())})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("building the dashboard")

    @app.route("/api/teacher/weak-students", methods=["GET"], endpoint="weak_students")
    @role_required(Role.TEACHER)
    def weak_students():
        try:
            try:
                days = int(request.args.get("days", 7))
            except ValueError:
                raise ValidationError("days must be a number")
            if days <= 0:
                raise ValidationError("days must be positive")
            return ok(container.dashboard_service.weak_students(current_user_id(), days=days))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading weak students")
