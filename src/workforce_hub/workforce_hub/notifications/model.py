from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from ..core.enums import OutboxStatus


class EventType(str, Enum):
    TASK_NOTIFICATION = "task_notification"
    SLA_ALERT = "sla_alert"
    ROLE_APPROVAL_REQUEST = "role_approval_request"


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class OutboxEvent:
    event_id: int
    event_type: str
    payload: dict
    status: OutboxStatus
    attempts: int
    next_attempt_at: datetime
    created_at: datetime
    last_error: Optional[str] = None
    delivered_at: Optional[datetime] = None


@dataclass(frozen=True)
class Notification:
    """In-app notification row shown in the user's bell menu."""

    notification_id: int
    user_id: int
    title: str
    message: str
    notification_type: NotificationType
    is_read: bool
    created_at: datetime


@dataclass(frozen=True)
class NewNotification:
    user_id: int
    title: str
    message: str
    notification_type: NotificationType = NotificationType.INFO
    # At most one row per (user_id, dedup_key).
    dedup_key: Optional[str] = None
