from __future__ import annotations

import logging
from enum import Enum
from functools import wraps
from typing import Optional, Type, TypeVar

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..academy.model import Actor
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .datetime_utils import parse_optional_date
from .serialization import to_json_value

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def json_ok(data=None, status: int = 200, message: Optional[str] = None):
    payload = {"success": True, "data": to_json_value(data)}
    if message:
        payload["message"] = message
    return jsonify(payload), status


def json_error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_actor() -> Actor:
    """Actor placed in the session by the identity layer."""
    try:
        return Actor(actor_id=int(session["user_id"]), role=Role(session.get("role")))
    except (KeyError, TypeError, ValueError):
        raise AuthorizationError("Authentication required")


def staff_required(view):
    """Allow coaches and admins."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Authentication required", 401)
        if session.get("role") not in (Role.COACH.value, Role.ADMIN.value):
            return json_error("You do not have permission to perform this action", 403)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Authentication required", 401)
        if session.get("role") != Role.ADMIN.value:
            return json_error("You do not have permission to perform this action", 403)
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def optional_text(value, field_name: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value


def required_date(value: Optional[str], field_name: str):
    parsed = parse_optional_date(value, field_name)
    if parsed is None:
        raise ValidationError(f"{field_name} is required")
    return parsed


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def required_int(value, field_name: str) -> int:
    parsed = optional_int(value, field_name)
    if parsed is None:
        raise ValidationError(f"{field_name} is required")
    return parsed


def optional_enum(enum_cls: Type[E], value, field_name: str) -> Optional[E]:
    if value is None or value == "":
        return None
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation(e: ValidationError):
        logger.warning("Rejected %s %s: %s", request.method, request.path, e)
        return json_error(str(e), 400)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return json_error(str(e), 404)

    @app.errorhandler(ConflictError)
    def handle_conflict(e: ConflictError):
        logger.warning("Conflict on %s %s: %s", request.method, request.path, e)
        return json_error(str(e), 409)

    @app.errorhandler(AuthorizationError)
    def handle_forbidden(e: AuthorizationError):
        logger.warning("Forbidden %s %s: %s", request.method, request.path, e)
        return json_error(str(e), 403)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return json_error(e.description or e.name, e.code or 500)
        logger.exception("Unexpected error on %s %s", request.method, request.path)
        return json_error("An unexpected error occurred", 500)
