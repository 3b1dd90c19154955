from __future__ import annotations

from decimal import Decimal

from ...core.enums import FinalStatus
from ...work.model import WorkItem
from ...work.rules import compute_earnings
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: approved items pay hours x current (possibly overridden) rate."""

    def payable_hours(self, item: WorkItem) -> Decimal:
        if item.final_status != FinalStatus.APPROVED:
            return Decimal("0")
        return Decimal(item.hours_worked)

    def earnings(self, item: WorkItem) -> Decimal:
        return compute_earnings(self.payable_hours(item), item.current_rate)
