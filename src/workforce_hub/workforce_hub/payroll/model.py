from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import SalaryPeriodStatus


@dataclass(frozen=True)
class SalaryPeriod:
    period_id: int
    name: str
    start_date: date
    end_date: date
    status: SalaryPeriodStatus
    created_by: Optional[int] = None
    closed_by: Optional[int] = None
    closed_at: Optional[datetime] = None


@dataclass(frozen=True)
class PayrollLine:
    user_id: int
    full_name: str
    total_hours: Decimal
    total_earnings: Decimal
    approved_items: int


@dataclass(frozen=True)
class PayrollReport:
    start: date
    end: date
    lines: list[PayrollLine]

    @property
    def total_earnings(self) -> Decimal:
        return sum((line.total_earnings for line in self.lines), Decimal("0.00"))
