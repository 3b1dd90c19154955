"""Durable notification outbox.

Business operations only ``publish`` (an INSERT); delivery happens later in
``OutboxDispatcher.run_once``, driven by ``scripts/dispatch_outbox.py``.
A failed delivery never touches the record that triggered it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from ..common.datetime_utils import utc_now
from ..core.constants import OUTBOX_BACKOFF_SECONDS, OUTBOX_BATCH_SIZE, OUTBOX_MAX_ATTEMPTS
from .model import EventType, OutboxEvent
from .repository import OutboxRepository

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], Any]


def backoff_delay(attempts: int, base_seconds: int = OUTBOX_BACKOFF_SECONDS) -> timedelta:
    """Delay before retry number ``attempts`` (1-based): base, 2*base, 4*base..."""
    return timedelta(seconds=base_seconds * (2 ** max(attempts - 1, 0)))


class OutboxPublisher:
    def __init__(self, outbox: OutboxRepository):
        self._outbox = outbox

    def publish(self, event_type: EventType, payload: dict, *, now: Optional[datetime] = None) -> int:
        now = now or utc_now()
        event_id = self._outbox.insert(event_type=event_type.value, payload=payload, now=now)
        logger.info("Queued %s event %s", event_type.value, event_id)
        return event_id

    def try_publish(self, event_type: EventType, payload: dict, *, now: Optional[datetime] = None) -> Optional[int]:
        """Publish, logging instead of raising; for callers whose own write already succeeded."""
        try:
            return self.publish(event_type, payload, now=now)
        except Exception:
            logger.exception("Failed to queue %s event", event_type.value)
            return None


@dataclass(frozen=True)
class DispatchResult:
    delivered: int = 0
    retried: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.delivered + self.retried + self.failed


class OutboxDispatcher:
    def __init__(
        self,
        outbox: OutboxRepository,
        handlers: Mapping[EventType, EventHandler],
        *,
        max_attempts: int = OUTBOX_MAX_ATTEMPTS,
        batch_size: int = OUTBOX_BATCH_SIZE,
        backoff_seconds: int = OUTBOX_BACKOFF_SECONDS,
    ):
        self._outbox = outbox
        self._handlers = {k.value: v for k, v in handlers.items()}
        self._max_attempts = int(max_attempts)
        self._batch_size = int(batch_size)
        self._backoff_seconds = int(backoff_seconds)

    def run_once(self, now: Optional[datetime] = None) -> DispatchResult:
        now = now or utc_now()
        delivered = retried = failed = 0

        for event in self._outbox.claim_due(now=now, limit=self._batch_size):
            outcome = self._deliver(event, now)
            if outcome == "delivered":
                delivered += 1
            elif outcome == "retried":
                retried += 1
            else:
                failed += 1

        if delivered or retried or failed:
            logger.info("Outbox run: delivered=%d retried=%d failed=%d", delivered, retried, failed)
        return DispatchResult(delivered=delivered, retried=retried, failed=failed)

    def _deliver(self, event: OutboxEvent, now: datetime) -> str:
        handler = self._handlers.get(event.event_type)
        attempts = event.attempts + 1

        if handler is None:
            logger.error("No handler for outbox event type %r (event %s)", event.event_type, event.event_id)
            self._outbox.mark_failed(event_id=event.event_id, attempts=attempts, error="unknown event type")
            return "failed"

        try:
            handler(event.payload)
        except Exception as e:
            error = str(e) or e.__class__.__name__
            if attempts >= self._max_attempts:
                logger.error("Outbox event %s failed permanently after %d attempts: %s", event.event_id, attempts, error)
                self._outbox.mark_failed(event_id=event.event_id, attempts=attempts, error=error)
                return "failed"

            next_at = now + backoff_delay(attempts, self._backoff_seconds)
            logger.warning("Outbox event %s attempt %d failed, retry at %s: %s", event.event_id, attempts, next_at, error)
            self._outbox.schedule_retry(event_id=event.event_id, attempts=attempts, next_attempt_at=next_at, error=error)
            return "retried"

        self._outbox.mark_delivered(event_id=event.event_id, now=now)
        return "delivered"
