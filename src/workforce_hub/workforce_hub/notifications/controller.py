from __future__ import annotations

from flask import Flask, jsonify, request

from ..authz.capabilities import Capability, approve_capability, override_capability
from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..core.exceptions import AuthorizationError, DomainError
from .model import Notification
from .payloads import SlaAlert, TaskNotification


def serialize_notification(n: Notification) -> dict:
    return {
        "id": n.notification_id,
        "title": n.title,
        "message": n.message,
        "type": n.notification_type.value,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat(),
    }


def register(app: Flask, container) -> None:
    task_service = container.task_notification_service
    sla_service = container.sla_alert_service
    inbox = container.in_app_notification_service

    @app.route("/functions/send-task-notification", methods=["POST"], endpoint="send_task_notification")
    @login_required
    def send_task_notification():
        try:
            notification = TaskNotification.from_payload(json_body())
            ctx = current_context()
            if not (
                ctx.has_capability(approve_capability(notification.kind))
                or ctx.has_capability(override_capability(notification.kind))
            ):
                raise AuthorizationError("You do not have permission to perform this action")
            message_id = task_service.send(notification)
            return jsonify({"success": True, "messageId": message_id})
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("send_task_notification", e)

    @app.route("/functions/send-sla-breach-alert", methods=["POST"], endpoint="send_sla_breach_alert")
    @login_required
    def send_sla_breach_alert():
        try:
            current_context().require(Capability.RESOLVE_REQUESTS)
            result = sla_service.send(SlaAlert.from_payload(json_body()))
            if not result.recipients:
                return jsonify({"success": True, "message": "No admins to notify"})
            return jsonify(
                {
                    "success": True,
                    "recipientCount": result.recipients,
                    "notificationsCreated": result.notifications_created,
                    "messageId": result.message_id,
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("send_sla_breach_alert", e)

    @app.route("/notifications", methods=["GET"], endpoint="my_notifications")
    @login_required
    def my_notifications():
        unread_only = request.args.get("unread") in {"1", "true"}
        items = inbox.list_mine(current_context(), unread_only=unread_only)
        return jsonify({"notifications": [serialize_notification(n) for n in items]})

    @app.route("/notifications/<int:notification_id>/read", methods=["POST"], endpoint="mark_notification_read")
    @login_required
    def mark_notification_read(notification_id: int):
        try:
            inbox.mark_read(current_context(), notification_id=notification_id)
            return jsonify({"success": True})
        except DomainError as e:
            return error_response(e)

    @app.route("/notifications/read-all", methods=["POST"], endpoint="mark_all_notifications_read")
    @login_required
    def mark_all_notifications_read():
        updated = inbox.mark_all_read(current_context())
        return jsonify({"success": True, "updated": updated})
