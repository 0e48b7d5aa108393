from __future__ import annotations

import logging
from functools import wraps

from flask import g, jsonify, request

from ..core.enums import Role
from ..core.exceptions import (
    AuthError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ScanRejectedError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (ValidationError, 400),
    (AuthError, 401),
    (AuthorizationError, 403),
    (ScanRejectedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (TransportError, 502),
]


def ok(data=None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def error_response(e: DomainError):
    status = next((code for cls, code in STATUS_BY_ERROR if isinstance(e, cls)), 400)
    return jsonify({"success": False, "code": e.code, "error": str(e)}), status


def internal_error(action: str):
    logger.exception("unexpected error during %s", action)
    return jsonify({"success": False, "code": "server_error", "error": f"System error while {action}"}), 500


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return ""
    return token.strip()


def make_auth_decorators(auth_service):
    """Build ``token_required``/``admin_required`` bound to an AuthService."""

    def token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                g.staff = auth_service.resolve(bearer_token())
            except AuthError as e:
                return error_response(e)
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                g.staff = auth_service.resolve(bearer_token())
            except AuthError as e:
                return error_response(e)
            if g.staff.role != Role.ADMIN:
                return error_response(AuthorizationError("Admin access required"))
            return view(*args, **kwargs)

        return wrapper

    return token_required, admin_required
