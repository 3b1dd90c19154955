from __future__ import annotations

from datetime import timedelta

from src.workforce_hub.workforce_hub.core.enums import OutboxStatus
from src.workforce_hub.workforce_hub.core.exceptions import ExternalServiceError
from src.workforce_hub.workforce_hub.notifications.model import EventType
from src.workforce_hub.workforce_hub.notifications.outbox import OutboxDispatcher, OutboxPublisher, backoff_delay
from tests.fakes import T0, FakeOutboxRepo


class FlakyHandler:
    def __init__(self, failures):
        self.failures = failures
        self.calls = []

    def __call__(self, payload):
        self.calls.append(payload)
        if self.failures:
            self.failures -= 1
            raise ExternalServiceError("Failed to send email")
        return "ok"


def test_backoff_doubles_per_attempt():
    assert backoff_delay(1, 60) == timedelta(seconds=60)
    assert backoff_delay(2, 60) == timedelta(seconds=120)
    assert backoff_delay(4, 60) == timedelta(seconds=480)


def test_delivered_event_is_not_redelivered():
    outbox = FakeOutboxRepo()
    OutboxPublisher(outbox).publish(EventType.TASK_NOTIFICATION, {"userId": 3}, now=T0)
    handler = FlakyHandler(failures=0)
    dispatcher = OutboxDispatcher(outbox, {EventType.TASK_NOTIFICATION: handler})

    first = dispatcher.run_once(T0)
    second = dispatcher.run_once(T0 + timedelta(hours=1))

    assert first.delivered == 1
    assert second.delivered == 0
    assert len(handler.calls) == 1
    assert outbox.events[1].status == OutboxStatus.DELIVERED


def test_failure_is_retried_after_backoff():
    outbox = FakeOutboxRepo()
    OutboxPublisher(outbox).publish(EventType.SLA_ALERT, {"requestId": 1}, now=T0)
    handler = FlakyHandler(failures=1)
    dispatcher = OutboxDispatcher(outbox, {EventType.SLA_ALERT: handler}, backoff_seconds=60)

    result = dispatcher.run_once(T0)
    assert result.retried == 1
    event = outbox.events[1]
    assert event.status == OutboxStatus.PENDING
    assert event.attempts == 1
    assert event.next_attempt_at == T0 + timedelta(seconds=60)
    assert "Failed to send email" in event.last_error

    # not due yet
    assert dispatcher.run_once(T0 + timedelta(seconds=30)).retried == 0
    assert len(handler.calls) == 1

    result = dispatcher.run_once(T0 + timedelta(seconds=60))
    assert result.delivered == 1
    assert outbox.events[1].status == OutboxStatus.DELIVERED


def test_event_fails_permanently_after_max_attempts():
    outbox = FakeOutboxRepo()
    OutboxPublisher(outbox).publish(EventType.TASK_NOTIFICATION, {"userId": 3}, now=T0)
    handler = FlakyHandler(failures=10)
    dispatcher = OutboxDispatcher(outbox, {EventType.TASK_NOTIFICATION: handler}, max_attempts=2, backoff_seconds=1)

    dispatcher.run_once(T0)
    result = dispatcher.run_once(T0 + timedelta(seconds=5))

    assert result.failed == 1
    assert outbox.events[1].status == OutboxStatus.FAILED
    assert outbox.events[1].attempts == 2
    assert dispatcher.run_once(T0 + timedelta(hours=1)).failed == 0


def test_unknown_event_type_fails_without_retry():
    outbox = FakeOutboxRepo()
    outbox.insert(event_type="legacy_event", payload={}, now=T0)
    dispatcher = OutboxDispatcher(outbox, {})

    result = dispatcher.run_once(T0)

    assert result.failed == 1
    assert outbox.events[1].status == OutboxStatus.FAILED


def test_try_publish_swallows_storage_errors():
    publisher = OutboxPublisher(FakeOutboxRepo(fail_insert=True))
    assert publisher.try_publish(EventType.TASK_NOTIFICATION, {"userId": 1}, now=T0) is None
