from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyMarkedError,
    AuthorizationError,
    DomainError,
    NothingToEditError,
    NotFoundError,
    ValidationError,
)
from ..users.principal import Principal

logger = logging.getLogger(__name__)

_STATUS = (
    (AlreadyMarkedError, 409),
    (NothingToEditError, 404),
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (ValidationError, 400),
)


def current_principal() -> Principal:
    """Principal forwarded by the auth gateway in X-Role / X-Principal-Id headers."""
    role = (request.headers.get("X-Role") or "").strip().lower()
    principal_id = (request.headers.get("X-Principal-Id") or "").strip()
    try:
        return Principal(role=Role(role), principal_id=int(principal_id))
    except ValueError:
        raise AuthorizationError("Missing or invalid caller identity")


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def error_response(exc: DomainError):
    for exc_type, status in _STATUS:
        if isinstance(exc, exc_type):
            body = {"success": False, "message": str(exc)}
            if isinstance(exc, AlreadyMarkedError) and exc.conflicts:
                body["conflicts"] = [
                    {"student_id": student_id, "periods": list(periods)} for student_id, periods in exc.conflicts
                ]
            return jsonify(body), status
    return jsonify({"success": False, "message": str(exc)}), 400


def json_endpoint(view):
    """Map domain errors to JSON responses; anything else is a 500 with a generic message."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return jsonify({"success": False, "message": "Internal server error"}), 500

    return wrapper
