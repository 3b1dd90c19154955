from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

from ..core.enums import OutboxStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, placeholders, to_json
from .model import OutboxEvent
from .repository import OutboxRepository

# How long a claimed event is hidden from other workers.
CLAIM_LEASE = timedelta(minutes=5)


class MySQLOutboxRepository(OutboxRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, *, event_type: str, payload: dict, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notification_outbox(event_type, payload, status, attempts, next_attempt_at, created_at)
                VALUES(%s,%s,%s,0,%s,%s)
                """,
                (event_type, to_json(payload), OutboxStatus.PENDING.value, now, now),
            )
            return int(cur.lastrowid)

    def claim_due(self, *, now: datetime, limit: int) -> Sequence[OutboxEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, event_type, payload, status, attempts, last_error,
                       next_attempt_at, created_at, delivered_at
                FROM notification_outbox
                WHERE status=%s AND next_attempt_at <= %s
                ORDER BY event_id
                LIMIT %s
                FOR UPDATE SKIP LOCKED
                """,
                (OutboxStatus.PENDING.value, now, int(limit)),
            )
            rows = fetchall(cur)
            if rows:
                ids = [int(r["event_id"]) for r in rows]
                cur.execute(
                    f"UPDATE notification_outbox SET next_attempt_at=%s WHERE event_id IN ({placeholders(ids)})",
                    tuple([now + CLAIM_LEASE] + ids),
                )
            return [
                OutboxEvent(
                    event_id=int(r["event_id"]),
                    event_type=r["event_type"],
                    payload=from_json(r["payload"]) or {},
                    status=OutboxStatus(r["status"]),
                    attempts=int(r["attempts"]),
                    next_attempt_at=r["next_attempt_at"],
                    created_at=r["created_at"],
                    last_error=r.get("last_error"),
                    delivered_at=r.get("delivered_at"),
                )
                for r in rows
            ]

    def mark_delivered(self, *, event_id: int, now: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notification_outbox SET status=%s, delivered_at=%s, last_error=NULL WHERE event_id=%s",
                (OutboxStatus.DELIVERED.value, now, int(event_id)),
            )

    def schedule_retry(self, *, event_id: int, attempts: int, next_attempt_at: datetime, error: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notification_outbox SET attempts=%s, next_attempt_at=%s, last_error=%s WHERE event_id=%s",
                (int(attempts), next_attempt_at, error, int(event_id)),
            )

    def mark_failed(self, *, event_id: int, attempts: int, error: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notification_outbox SET status=%s, attempts=%s, last_error=%s WHERE event_id=%s",
                (OutboxStatus.FAILED.value, int(attempts), error, int(event_id)),
            )
