from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import Decision, FinalStatus, WorkItemKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewWorkItem, WorkItem
from .repository import WorkItemRepository

_COLUMNS = """
    w.item_id, w.kind, w.user_id, w.title, w.platform, w.work_date, w.description,
    w.hours_worked, w.base_rate, w.current_rate, w.earnings, w.final_status,
    w.team_lead_status, w.team_lead_rejection_reason, w.team_lead_reviewed_by, w.team_lead_reviewed_at,
    w.admin_status, w.admin_reason, w.admin_reviewed_by, w.admin_reviewed_at, w.created_at
"""


def _decision(value) -> Optional[Decision]:
    return Decision(value) if value else None


def _to_item(r: dict) -> WorkItem:
    return WorkItem(
        item_id=int(r["item_id"]),
        kind=WorkItemKind(r["kind"]),
        user_id=int(r["user_id"]),
        title=r["title"],
        platform=r.get("platform"),
        work_date=r["work_date"],
        description=r.get("description"),
        hours_worked=Decimal(r["hours_worked"]),
        base_rate=Decimal(r["base_rate"]),
        current_rate=Decimal(r["current_rate"]),
        earnings=Decimal(r["earnings"]),
        final_status=FinalStatus(r["final_status"]),
        team_lead_status=_decision(r.get("team_lead_status")),
        team_lead_rejection_reason=r.get("team_lead_rejection_reason"),
        team_lead_reviewed_by=r.get("team_lead_reviewed_by"),
        team_lead_reviewed_at=r.get("team_lead_reviewed_at"),
        admin_status=_decision(r.get("admin_status")),
        admin_reason=r.get("admin_reason"),
        admin_reviewed_by=r.get("admin_reviewed_by"),
        admin_reviewed_at=r.get("admin_reviewed_at"),
        created_at=r.get("created_at"),
    )


class MySQLWorkItemRepository(WorkItemRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, item: NewWorkItem) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO work_items(
                    kind, user_id, title, platform, work_date, description,
                    hours_worked, base_rate, current_rate, earnings, final_status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    item.kind.value,
                    int(item.user_id),
                    item.title,
                    item.platform,
                    item.work_date,
                    item.description,
                    item.hours_worked,
                    item.base_rate,
                    item.base_rate,
                    item.earnings,
                    FinalStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, item_id: int) -> Optional[WorkItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_items w WHERE w.item_id=%s", (int(item_id),))
            row = fetchone(cur)
            return _to_item(row) if row else None

    def list_items(
        self,
        *,
        kind: Optional[WorkItemKind] = None,
        user_id: Optional[int] = None,
        team_lead_id: Optional[int] = None,
        final_status: Optional[FinalStatus] = None,
        team_lead_status: Optional[Decision] = None,
        limit: int = 200,
    ) -> Sequence[WorkItem]:
        clauses = ["1=1"]
        params: list[object] = []

        if kind is not None:
            clauses.append("w.kind=%s")
            params.append(kind.value)
        if user_id is not None:
            clauses.append("w.user_id=%s")
            params.append(int(user_id))
        if team_lead_id is not None:
            clauses.append("u.team_lead_id=%s")
            params.append(int(team_lead_id))
        if final_status is not None:
            clauses.append("w.final_status=%s")
            params.append(final_status.value)
        if team_lead_status is not None:
            clauses.append("w.team_lead_status=%s")
            params.append(team_lead_status.value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_items w
                JOIN users u ON u.user_id = w.user_id
                WHERE {where}
                ORDER BY w.work_date DESC, w.item_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_item(r) for r in fetchall(cur)]

    def list_approved_between(self, *, start: date, end: date) -> Sequence[WorkItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_items w
                WHERE w.final_status=%s AND w.work_date BETWEEN %s AND %s
                ORDER BY w.user_id, w.work_date
                """,
                (FinalStatus.APPROVED.value, start, end),
            )
            return [_to_item(r) for r in fetchall(cur)]

    def apply_team_lead_review(
        self,
        *,
        item_id: int,
        decision: Decision,
        reviewer_id: int,
        reason: Optional[str],
        final_status: FinalStatus,
        reviewed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_items
                SET team_lead_status=%s, team_lead_rejection_reason=%s,
                    team_lead_reviewed_by=%s, team_lead_reviewed_at=%s, final_status=%s
                WHERE item_id=%s AND final_status=%s AND admin_status IS NULL
                """,
                (
                    decision.value,
                    reason,
                    int(reviewer_id),
                    reviewed_at,
                    final_status.value,
                    int(item_id),
                    FinalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def apply_override(
        self,
        *,
        item_id: int,
        decision: Decision,
        reviewer_id: int,
        reason: Optional[str],
        reviewed_at: datetime,
        require_pending: bool,
    ) -> bool:
        guard = " AND final_status=%s" if require_pending else ""
        params: list[object] = [
            decision.value,
            reason,
            int(reviewer_id),
            reviewed_at,
            decision.value,
            int(item_id),
        ]
        if require_pending:
            params.append(FinalStatus.PENDING.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE work_items
                SET admin_status=%s, admin_reason=%s, admin_reviewed_by=%s, admin_reviewed_at=%s,
                    final_status=%s
                WHERE item_id=%s{guard}
                """,
                tuple(params),
            )
            return cur.rowcount > 0

    def update_rate(
        self,
        *,
        item_id: int,
        current_rate: Decimal,
        earnings: Decimal,
        require_pending: bool,
    ) -> bool:
        guard = " AND final_status=%s" if require_pending else ""
        params: list[object] = [current_rate, earnings, int(item_id)]
        if require_pending:
            params.append(FinalStatus.PENDING.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE work_items SET current_rate=%s, earnings=%s WHERE item_id=%s{guard}",
                tuple(params),
            )
            return cur.rowcount > 0
