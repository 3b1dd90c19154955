from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..common.templates import render
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def _html(title: str, message: str, status: int, *, success: bool):
    body = render("role_approval_result.html", title=title, message=message, success=success)
    return body, status, {"Content-Type": "text/html; charset=utf-8"}


def register(app: Flask, container) -> None:
    service = container.role_approval_service

    @app.route("/functions/request-role-approval", methods=["POST"], endpoint="request_role_approval")
    @login_required
    def request_role_approval():
        try:
            body = json_body()
            approval_id = service.request_transfer(
                current_context(),
                target_user_id=body.get("targetUserId"),
                target_user_name=body.get("targetUserName"),
            )
            return jsonify({"success": True, "approvalId": approval_id, "message": "Approval request sent"}), 201
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("request_role_approval", e)

    # Opened from the email link, so no session and an HTML response.
    @app.route("/functions/process-role-approval", methods=["GET"], endpoint="process_role_approval")
    def process_role_approval():
        try:
            outcome = service.process(token=request.args.get("token"), action=request.args.get("action"))
            return _html(outcome.title, outcome.message, 200, success=True)
        except DomainError as e:
            return _html("Unable to process request", str(e), e.status_code, success=False)
        except Exception:
            logger.exception("Unhandled error in process_role_approval")
            return _html("Something went wrong", "Please try again later.", 500, success=False)
