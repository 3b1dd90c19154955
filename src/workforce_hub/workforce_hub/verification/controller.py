from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..core.exceptions import DomainError, ValidationError


def register(app: Flask, container) -> None:
    service = container.phone_verification_service

    @app.route("/functions/send-verification-sms", methods=["POST"], endpoint="send_verification_sms")
    @login_required
    def send_verification_sms():
        try:
            body = json_body()
            action = body.get("action")
            ctx = current_context()
            if action == "send":
                result = service.send_code(ctx, phone_number=body.get("phoneNumber"))
                if not result.sent:
                    return jsonify(
                        {
                            "success": True,
                            "message": "A code was sent recently; please wait before requesting another.",
                            "retry_after": result.retry_after,
                        }
                    )
                return jsonify({"success": True, "message": "Verification code sent"})
            if action == "verify":
                service.verify_code(ctx, phone_number=body.get("phoneNumber"), code=body.get("code"))
                return jsonify({"success": True, "message": "Phone number verified"})
            raise ValidationError("Invalid action")
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("send_verification_sms", e)
