from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..authz.hierarchy import get_role_display_name
from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..core.exceptions import DomainError
from .model import User

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    return {
        "user_id": user.user_id,
        "mpcn_id": user.mpcn_id,
        "full_name": user.full_name,
        "email": user.email,
        "role": user.role.value,
        "department": user.department,
        "team_lead_id": user.team_lead_id,
        "phone_number": user.phone_number,
        "phone_verified": user.phone_verified_at is not None,
    }


def register(app: Flask, container) -> None:
    auth_service = container.auth_service
    mpcn_service = container.mpcn_id_service
    admin_service = container.user_admin_service

    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body() or request.form
        try:
            s_user = auth_service.authenticate(body.get("identifier") or body.get("email", ""), body.get("password", ""))
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("login", e)

        session.clear()
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        logger.info("User %s logged in", s_user.user_id)
        return jsonify(
            {"user_id": s_user.user_id, "full_name": s_user.full_name, "role": s_user.role.value, "mpcn_id": s_user.mpcn_id}
        )

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        try:
            ctx = current_context()
            user = auth_service.profile(ctx.user_id)
            data = serialize_user(user)
            data["capabilities"] = sorted(c.value for c in ctx.capabilities)
            data["authority_tier"] = int(ctx.tier)
            data["role_display_name"] = get_role_display_name(user.role)
            return jsonify(data)
        except DomainError as e:
            return error_response(e)

    # Called from the login page before a session exists.
    @app.route("/functions/resolve-mpcn-id", methods=["POST"], endpoint="resolve_mpcn_id")
    def resolve_mpcn_id():
        try:
            resolved = mpcn_service.resolve(json_body().get("mpcn_id", ""))
            return jsonify({"email": resolved.email, "masked_email": resolved.masked_email})
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("resolve_mpcn_id", e)

    @app.route("/functions/admin-delete-user", methods=["POST"], endpoint="admin_delete_user")
    @login_required
    def admin_delete_user():
        try:
            admin_service.delete_user(current_context(), user_id=json_body().get("userId"))
            return jsonify({"success": True})
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("admin_delete_user", e)

    @app.route("/admin/users", methods=["GET"], endpoint="admin_users")
    @login_required
    def admin_users():
        try:
            return jsonify({"users": admin_service.list_users(current_context())})
        except DomainError as e:
            return error_response(e)
