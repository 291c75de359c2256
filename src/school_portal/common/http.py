from __future__ import annotations

import logging
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    StateError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


def to_primitive(value):
    """JSON-ready copy of domain objects: dataclasses become camelCase dicts."""
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): to_primitive(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k.value if isinstance(k, Enum) else k): to_primitive(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_primitive(v) for v in value]
    return value


def ok(data=None, *, status: int = 200, **extra):
    body = {"success": True}
    if data is not None:
        body["data"] = to_primitive(data)
    body.update({k: to_primitive(v) for k, v in extra.items()})
    return jsonify(body), status


def error_response(e: DomainError):
    # ConflictError is checked before ValidationError: duplicates are both.
    if isinstance(e, ConflictError):
        status = 409
    elif isinstance(e, StateError):
        status = 409
    elif isinstance(e, NotFoundError):
        status = 404
    elif isinstance(e, AuthorizationError):
        status = 403
    elif isinstance(e, ValidationError):
        status = 400
    else:
        status = 400
    return jsonify({"success": False, "message": str(e), "error": type(e).__name__}), status


def server_error(action: str):
    logger.exception("Unexpected error while %s", action)
    return jsonify({"success": False, "message": f"System error while {action}"}), 500


def current_user_id() -> int:
    return int(session["user_id"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please log in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def role_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Please log in to continue"}), 401
            if session.get("role") not in allowed:
                return error_response(AuthorizationError("You do not have permission for this action"))
            return view(*args, **kwargs)

        return wrapper

    return decorator
