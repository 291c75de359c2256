from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import require_iso_date
from ..common.http import (
    current_user_id,
    error_response,
    login_required,
    ok,
    role_required,
    server_error,
    to_primitive,
)
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .service import parse_entries


def register(app: Flask, container: Container) -> None:
    svc = container.attendance_service

    def _view_dict(view) -> dict:
        data = to_primitive(view.record)
        data["locked"] = view.locked
        return data

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @role_required(Role.TEACHER)
    def mark_attendance():
        body = request.get_json(silent=True) or {}
        try:
            raw_entries = body.get("attendanceData")
            if not isinstance(raw_entries, list):
                raise ValidationError("Invalid attendance data")
            try:
                class_id = int(body.get("classId"))
            except (TypeError, ValueError):
                raise ValidationError("classId is required")

            created = svc.mark_attendance(
                class_id=class_id,
                attendance_date=require_iso_date(body.get("date"), "date"),
                entries=parse_entries(raw_entries),
                marked_by=current_user_id(),
            )
            return ok(created, status=201, message="Attendance marked successfully")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("marking attendance")

    @app.route("/api/attendance/<int:record_id>", methods=["PUT"], endpoint="update_attendance")
    @role_required(Role.TEACHER, Role.ADMIN)
    def update_attendance(record_id: int):
        body = request.get_json(silent=True) or {}
        try:
            updated = svc.update_attendance(
                record_id=record_id,
                new_status=body.get("status"),
                reason=body.get("reason"),
                changed_by=current_user_id(),
            )
            return ok(updated, message="Attendance updated successfully")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("updating attendance")

    @app.route("/api/attendance/class/<int:class_id>", methods=["GET"], endpoint="attendance_by_class")
    @login_required
    def attendance_by_class(class_id: int):
        try:
            default_start, default_end = svc.default_report_range()
            start = request.args.get("startDate")
            end = request.args.get("endDate")
            views = svc.get_by_class_and_range(
                class_id=class_id,
                start_date=require_iso_date(start, "startDate") if start else default_start,
                end_date=require_iso_date(end, "endDate") if end else default_end,
            )
            return ok([_view_dict(v) for v in views], count=len(views))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading attendance")

    @app.route("/api/attendance/<int:record_id>/audit", methods=["GET"], endpoint="attendance_audit")
    @login_required
    def attendance_audit(record_id: int):
        try:
            return ok(svc.get_audit_trail(record_id))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("loading the audit trail")

    @app.route(
        "/api/attendance/drafts/<int:class_id>/<draft_date>",
        methods=["GET", "PUT", "DELETE"],
        endpoint="attendance_draft",
    )
    @role_required(Role.TEACHER)
    def attendance_draft(class_id: int, draft_date: str):
        try:
            day = require_iso_date(draft_date, "date")
            if request.method == "PUT":
                body = request.get_json(silent=True) or {}
                raw_entries = body.get("attendanceData")
                if not isinstance(raw_entries, list):
                    raise ValidationError("Invalid attendance data")
                svc.save_draft(class_id=class_id, attendance_date=day, entries=parse_entries(raw_entries))
                return ok(message="Draft saved")
            if request.method == "DELETE":
                svc.discard_draft(class_id=class_id, attendance_date=day)
                return ok(message="Draft discarded")
            return ok(svc.get_draft(class_id=class_id, attendance_date=day) or {})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("handling the attendance draft")

    @app.route("/api/admin/attendance/reports", methods=["GET"], endpoint="attendance_reports")
    @role_required(Role.ADMIN)
    def attendance_reports():
        try:
            class_arg = request.args.get("classId", "all")
            if class_arg == "all":
                class_ids = [c.class_id for c in container.roster_repo.list_all_classes()]
            else:
                try:
                    class_ids = [int(class_arg)]
                except ValueError:
                    raise ValidationError("classId must be a number or 'all'")
            start = request.args.get("startDate")
            end = request.args.get("endDate")
            summary = svc.status_summary(
                class_ids=class_ids,
                start_date=require_iso_date(start, "startDate") if start else None,
                end_date=require_iso_date(end, "endDate") if end else None,
            )
            return ok(**summary)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error("building the attendance report")
