from __future__ import annotations

import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    HardwareFault,
    IdentityBlocked,
    IdentityNotFound,
    InputFault,
    IntegrityRace,
    PolicyRejection,
    QrDisabled,
)

logger = logging.getLogger(__name__)


def status_for(err: DomainError) -> int:
    if isinstance(err, AuthenticationError):
        return 401
    if isinstance(err, (AuthorizationError, IdentityBlocked, QrDisabled)):
        return 403
    if isinstance(err, IdentityNotFound):
        return 404
    if isinstance(err, IntegrityRace):
        return 409
    if isinstance(err, HardwareFault):
        return 503
    if isinstance(err, (PolicyRejection, InputFault)):
        return 400
    return 400


def error_response(err: DomainError):
    return jsonify({"success": False, "code": err.code, "message": str(err)}), status_for(err)


def unexpected_error_response(context: str):
    """500 with a generic message; the traceback goes to the log only."""

    logger.exception("Unexpected error while %s", context)
    return jsonify({"success": False, "code": "internal_error", "message": f"System error while {context}"}), 500


def current_role() -> Role:
    return Role(session.get("role", Role.MEMBER.value))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "member_id" not in session:
            return jsonify({"success": False, "code": "authentication_error", "message": "Please log in"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "member_id" not in session:
            return jsonify({"success": False, "code": "authentication_error", "message": "Please log in"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"success": False, "code": "authorization_error", "message": "Admin access required"}), 403
        return view(*args, **kwargs)

    return wrapper


def kiosk_required(view):
    """Kiosks present the shared X-Kiosk-Key header; an admin session also passes."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("KIOSK_API_KEY") or ""
        supplied = request.headers.get("X-Kiosk-Key", "")
        if expected and hmac.compare_digest(supplied, expected):
            return view(*args, **kwargs)
        if session.get("role") == Role.ADMIN.value:
            return view(*args, **kwargs)
        return jsonify({"success": False, "code": "authorization_error", "message": "Kiosk key required"}), 403

    return wrapper
