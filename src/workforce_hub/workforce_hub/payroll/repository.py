from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SalaryPeriodStatus
from .model import SalaryPeriod


class SalaryPeriodRepository(Protocol):
    def create(self, *, name: str, start_date: date, end_date: date, created_by: int) -> int:
        raise NotImplementedError

    def get(self, period_id: int) -> Optional[SalaryPeriod]:
        raise NotImplementedError

    def list_all(self) -> Sequence[SalaryPeriod]:
        raise NotImplementedError

    def set_status(
        self,
        *,
        period_id: int,
        status: SalaryPeriodStatus,
        closed_by: Optional[int],
        closed_at: Optional[datetime],
    ) -> bool:
        raise NotImplementedError
