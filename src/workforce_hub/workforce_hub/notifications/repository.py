from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import NewNotification, Notification, OutboxEvent


class OutboxRepository(Protocol):
    def insert(self, *, event_type: str, payload: dict, now: datetime) -> int:
        raise NotImplementedError

    def claim_due(self, *, now: datetime, limit: int) -> Sequence[OutboxEvent]:
        """Return due pending events and lease them so another worker skips them."""

        raise NotImplementedError

    def mark_delivered(self, *, event_id: int, now: datetime) -> None:
        raise NotImplementedError

    def schedule_retry(self, *, event_id: int, attempts: int, next_attempt_at: datetime, error: str) -> None:
        raise NotImplementedError

    def mark_failed(self, *, event_id: int, attempts: int, error: str) -> None:
        raise NotImplementedError


class NotificationRepository(Protocol):
    def insert_many(self, notifications: Sequence[NewNotification]) -> int:
        """Store the rows and return how many were new; duplicate dedup keys are skipped."""

        raise NotImplementedError

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, *, user_id: int, notification_id: int) -> bool:
        raise NotImplementedError

    def mark_all_read(self, *, user_id: int) -> int:
        raise NotImplementedError
