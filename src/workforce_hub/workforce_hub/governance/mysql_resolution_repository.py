from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Priority, ResolutionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ResolutionRequest
from .repository import ResolutionRequestRepository

_COLUMNS = """
    request_id, raised_by, category, title, description, priority, status, sla_due_at, created_at,
    warning_alerted_at, breach_alerted_at, escalation_reason, resolution, resolved_by, resolved_at
"""


def _to_request(r: dict) -> ResolutionRequest:
    return ResolutionRequest(
        request_id=int(r["request_id"]),
        raised_by=int(r["raised_by"]),
        category=r["category"],
        title=r["title"],
        description=r["description"],
        priority=Priority(r["priority"]),
        status=ResolutionStatus(r["status"]),
        sla_due_at=r["sla_due_at"],
        created_at=r["created_at"],
        warning_alerted_at=r.get("warning_alerted_at"),
        breach_alerted_at=r.get("breach_alerted_at"),
        escalation_reason=r.get("escalation_reason"),
        resolution=r.get("resolution"),
        resolved_by=r.get("resolved_by"),
        resolved_at=r.get("resolved_at"),
    )


class MySQLResolutionRequestRepository(ResolutionRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        raised_by: int,
        category: str,
        title: str,
        description: str,
        priority: Priority,
        sla_due_at: datetime,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO resolution_requests(
                    raised_by, category, title, description, priority, status, sla_due_at, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(raised_by),
                    category,
                    title,
                    description,
                    priority.value,
                    ResolutionStatus.OPEN.value,
                    sla_due_at,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[ResolutionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM resolution_requests WHERE request_id=%s", (int(request_id),))
            row = fetchone(cur)
            return _to_request(row) if row else None

    def list_requests(
        self,
        *,
        status: Optional[ResolutionStatus] = None,
        raised_by: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[ResolutionRequest]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if raised_by is not None:
            clauses.append("raised_by=%s")
            params.append(int(raised_by))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM resolution_requests
                WHERE {where}
                ORDER BY sla_due_at, request_id
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def update_status(
        self,
        *,
        request_id: int,
        expected_status: ResolutionStatus,
        status: ResolutionStatus,
        escalation_reason: Optional[str] = None,
        resolution: Optional[str] = None,
        resolved_by: Optional[int] = None,
        resolved_at: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE resolution_requests
                SET status=%s,
                    escalation_reason=COALESCE(%s, escalation_reason),
                    resolution=COALESCE(%s, resolution),
                    resolved_by=%s, resolved_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    escalation_reason,
                    resolution,
                    resolved_by,
                    resolved_at,
                    int(request_id),
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0

    def list_due_before(self, cutoff: datetime) -> Sequence[ResolutionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM resolution_requests
                WHERE status<>%s AND sla_due_at <= %s
                ORDER BY sla_due_at
                """,
                (ResolutionStatus.RESOLVED.value, cutoff),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def claim_breach_alert(self, *, request_id: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE resolution_requests SET breach_alerted_at=%s WHERE request_id=%s AND breach_alerted_at IS NULL",
                (now, int(request_id)),
            )
            return cur.rowcount > 0

    def claim_warning_alert(self, *, request_id: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE resolution_requests SET warning_alerted_at=%s WHERE request_id=%s AND warning_alerted_at IS NULL",
                (now, int(request_id)),
            )
            return cur.rowcount > 0

    def release_alert_claim(self, *, request_id: int, breach: bool) -> None:
        column = "breach_alerted_at" if breach else "warning_alerted_at"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE resolution_requests SET {column}=NULL WHERE request_id=%s", (int(request_id),))
