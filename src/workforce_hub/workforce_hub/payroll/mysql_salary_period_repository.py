from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import SalaryPeriodStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import SalaryPeriod
from .repository import SalaryPeriodRepository


def _to_period(r: dict) -> SalaryPeriod:
    return SalaryPeriod(
        period_id=int(r["period_id"]),
        name=r["name"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=SalaryPeriodStatus(r["status"]),
        created_by=r.get("created_by"),
        closed_by=r.get("closed_by"),
        closed_at=r.get("closed_at"),
    )


class MySQLSalaryPeriodRepository(SalaryPeriodRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, name: str, start_date: date, end_date: date, created_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO salary_periods(name, start_date, end_date, status, created_by) VALUES(%s,%s,%s,%s,%s)",
                (name, start_date, end_date, SalaryPeriodStatus.OPEN.value, int(created_by)),
            )
            return int(cur.lastrowid)

    def get(self, period_id: int) -> Optional[SalaryPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_id, name, start_date, end_date, status, created_by, closed_by, closed_at
                FROM salary_periods WHERE period_id=%s
                """,
                (int(period_id),),
            )
            row = fetchone(cur)
            return _to_period(row) if row else None

    def list_all(self) -> Sequence[SalaryPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_id, name, start_date, end_date, status, created_by, closed_by, closed_at
                FROM salary_periods ORDER BY start_date DESC
                """
            )
            return [_to_period(r) for r in fetchall(cur)]

    def set_status(
        self,
        *,
        period_id: int,
        status: SalaryPeriodStatus,
        closed_by: Optional[int],
        closed_at: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE salary_periods SET status=%s, closed_by=%s, closed_at=%s WHERE period_id=%s",
                (status.value, closed_by, closed_at, int(period_id)),
            )
            return cur.rowcount > 0
