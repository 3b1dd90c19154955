from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...work.model import WorkItem


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def payable_hours(self, item: WorkItem) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def earnings(self, item: WorkItem) -> Decimal:
        raise NotImplementedError
