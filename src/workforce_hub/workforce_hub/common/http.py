from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..authz.context import AuthorizationContext
from ..core.enums import Role
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def error_response(exc: DomainError):
    return jsonify({"error": str(exc)}), exc.status_code


def unexpected_error(where: str, exc: Exception):
    logger.exception("Unhandled error in %s", where)
    return jsonify({"error": str(exc) or "Internal server error"}), 500


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_context() -> AuthorizationContext:
    """Build the authorization context from the session (one per request)."""
    return AuthorizationContext.for_role(
        user_id=int(session["user_id"]),
        role=Role(session["role"]),
        full_name=session.get("name") or "",
    )
