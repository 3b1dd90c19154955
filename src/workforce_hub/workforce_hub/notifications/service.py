from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..authz.context import AuthorizationContext
from ..authz.hierarchy import ALERT_RECIPIENT_ROLES
from ..common.templates import render
from ..core.enums import WorkItemKind
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .mailer import EmailMessage, EmailSender
from .model import NewNotification, Notification, NotificationType
from .payloads import SlaAlert, TaskNotification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)

PRIORITY_COLORS = {"urgent": "#ef4444", "high": "#f97316", "normal": "#eab308", "low": "#22c55e"}


def _task_status(notification: TaskNotification) -> tuple[str, str, str]:
    """Return (subject, status text, color) for a review outcome."""
    item_type = "Task" if notification.kind == WorkItemKind.TASK else "Work Report"
    if notification.action == "approved":
        text = "Approved (Admin Override)" if notification.is_override else "Approved"
        return f"✅ Your {item_type} has been approved", text, "#22c55e"
    if notification.action == "rejected":
        text = "Rejected (Admin Override)" if notification.is_override else "Rejected"
        return f"❌ Your {item_type} requires attention", text, "#ef4444"
    return f"🔄 Your {item_type} status has been overridden", "Overridden by Admin", "#3b82f6"


class TaskNotificationService:
    """Use case: email a submitter about a review decision on their task/report."""

    def __init__(self, users: UserRepository, sender: EmailSender):
        self._users = users
        self._sender = sender

    def send(self, notification: TaskNotification) -> str:
        user = self._users.get_by_id(notification.user_id)
        if not user or not user.email:
            raise ValidationError("Failed to get user email")

        subject, status_text, status_color = _task_status(notification)
        html = render(
            "emails/task_notification.html",
            item_type="Task" if notification.kind == WorkItemKind.TASK else "Work Report",
            item_label="Task:" if notification.kind == WorkItemKind.TASK else "Platform:",
            item_value=notification.item_title or notification.platform or "",
            work_date=notification.work_date,
            reviewer_name=notification.reviewer_name,
            reason=notification.reason,
            status_text=status_text,
            status_color=status_color,
            is_rejection=notification.action == "rejected",
        )
        message_id = self._sender.send(EmailMessage(to=[user.email], subject=subject, html=html))
        logger.info("Task notification (%s/%s) sent to user %s", notification.kind.value, notification.action, user.user_id)
        return message_id

    def handle_event(self, payload: dict) -> str:
        return self.send(TaskNotification.from_payload(payload))


@dataclass(frozen=True)
class SlaAlertResult:
    recipients: int
    notifications_created: int
    message_id: str = ""


class SlaAlertService:
    """Use case: alert every admin-tier user about an SLA warning or breach."""

    def __init__(
        self,
        users: UserRepository,
        notifications: NotificationRepository,
        sender: EmailSender,
        *,
        public_base_url: str = "",
    ):
        self._users = users
        self._notifications = notifications
        self._sender = sender
        self._public_base_url = public_base_url.rstrip("/")

    def send(self, alert: SlaAlert) -> SlaAlertResult:
        admins = [u for u in self._users.list_by_roles(ALERT_RECIPIENT_ROLES) if u.email]
        if not admins:
            logger.warning("No admin emails found for SLA alert on request %s", alert.request_id)
            return SlaAlertResult(recipients=0, notifications_created=0)

        # Rows go in before the email; a redelivered event skips them by dedup key.
        verb = "has exceeded its SLA deadline" if alert.is_breach else "is approaching its deadline"
        dedup_key = f"sla:{alert.request_id}:{'breach' if alert.is_breach else 'warning'}"
        created = self._notifications.insert_many(
            [
                NewNotification(
                    user_id=u.user_id,
                    title="SLA Breach Alert" if alert.is_breach else "SLA Warning",
                    message=f'Resolution request "{alert.title}" {verb}',
                    notification_type=NotificationType.ERROR if alert.is_breach else NotificationType.WARNING,
                    dedup_key=dedup_key,
                )
                for u in admins
            ]
        )

        if alert.is_breach:
            subject = f'🚨 SLA Breach: "{alert.title}" requires immediate attention'
        else:
            subject = f'⚠️ SLA Warning: "{alert.title}" is approaching deadline'

        html = render(
            "emails/sla_alert.html",
            alert=alert,
            status_text="SLA BREACHED" if alert.is_breach else "SLA Warning",
            status_color="#ef4444" if alert.is_breach else "#f97316",
            priority_color=PRIORITY_COLORS.get(alert.priority.value, "#71717a"),
            due_display=alert.sla_due_at.strftime("%a, %b %d %H:%M UTC"),
            request_url=f"{self._public_base_url}/governance?tab=requests",
        )
        message_id = self._sender.send(EmailMessage(to=[u.email for u in admins], subject=subject, html=html))
        logger.info("SLA alert for request %s sent to %d admins", alert.request_id, len(admins))
        return SlaAlertResult(recipients=len(admins), notifications_created=created, message_id=message_id)

    def handle_event(self, payload: dict) -> SlaAlertResult:
        return self.send(SlaAlert.from_payload(payload))


class InAppNotificationService:
    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def list_mine(self, ctx: AuthorizationContext, *, unread_only: bool = False) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id=ctx.user_id, unread_only=unread_only)

    def mark_read(self, ctx: AuthorizationContext, *, notification_id: int) -> None:
        if not self._notifications.mark_read(user_id=ctx.user_id, notification_id=int(notification_id)):
            raise NotFoundError("Notification not found")

    def mark_all_read(self, ctx: AuthorizationContext) -> int:
        return self._notifications.mark_all_read(user_id=ctx.user_id)
