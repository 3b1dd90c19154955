from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..authz.capabilities import Capability
from ..authz.context import AuthorizationContext
from ..common.datetime_utils import utc_now
from ..common.validators import optional_text, require_max_length, require_non_empty
from ..core.enums import SalaryPeriodStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from ..work.repository import WorkItemRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import PayrollLine, PayrollReport, SalaryPeriod
from .repository import SalaryPeriodRepository

logger = logging.getLogger(__name__)


class PayrollService:
    """Use cases: payroll summary over approved work and salary period lifecycle."""

    def __init__(
        self,
        items: WorkItemRepository,
        users: UserRepository,
        periods: SalaryPeriodRepository,
        audit: AuditService,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._items = items
        self._users = users
        self._periods = periods
        self._audit = audit
        self._calculator = calculator or StandardPayrollCalculator()

    # -------- Calculation --------
    def calculate(self, ctx: AuthorizationContext, *, start: date, end: date) -> PayrollReport:
        ctx.require(Capability.VIEW_PAYROLL)
        if start > end:
            raise ValidationError("Start date must be on or before end date")

        totals: dict[int, dict] = {}
        for item in self._items.list_approved_between(start=start, end=end):
            row = totals.setdefault(
                item.user_id, {"hours": Decimal("0"), "earnings": Decimal("0.00"), "count": 0}
            )
            row["hours"] += self._calculator.payable_hours(item)
            row["earnings"] += self._calculator.earnings(item)
            row["count"] += 1

        lines = []
        for user_id, row in totals.items():
            user = self._users.get_by_id(user_id)
            lines.append(
                PayrollLine(
                    user_id=user_id,
                    full_name=user.full_name if user else "Unknown",
                    total_hours=row["hours"],
                    total_earnings=row["earnings"],
                    approved_items=row["count"],
                )
            )
        lines.sort(key=lambda line: (-line.total_earnings, line.full_name))
        return PayrollReport(start=start, end=end, lines=lines)

    def calculate_for_period(self, ctx: AuthorizationContext, *, period_id: int) -> PayrollReport:
        period = self._require_period(period_id)
        return self.calculate(ctx, start=period.start_date, end=period.end_date)

    # -------- Salary periods --------
    def list_periods(self, ctx: AuthorizationContext) -> Sequence[SalaryPeriod]:
        ctx.require(Capability.VIEW_PAYROLL)
        return self._periods.list_all()

    def create_period(self, ctx: AuthorizationContext, *, name: str, start: date, end: date) -> int:
        ctx.require(Capability.MANAGE_SALARY_PERIODS)
        name = require_max_length(require_non_empty(name, "Name"), "Name", 120)
        if start > end:
            raise ValidationError("Start date must be on or before end date")

        period_id = self._periods.create(name=name, start_date=start, end_date=end, created_by=ctx.user_id)
        self._audit.record(
            entity_type="salary_period",
            entity_id=period_id,
            action=AuditAction.SALARY_PERIOD_CREATED,
            performed_by=ctx.user_id,
            new_values={"name": name, "start_date": start, "end_date": end},
        )
        return period_id

    def toggle_period(
        self,
        ctx: AuthorizationContext,
        *,
        period_id: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SalaryPeriod:
        """Close an open period or reopen a closed one."""
        ctx.require(Capability.MANAGE_SALARY_PERIODS)
        period = self._require_period(period_id)
        now = now or utc_now()

        if period.status == SalaryPeriodStatus.OPEN:
            new_status, closed_by, closed_at = SalaryPeriodStatus.CLOSED, ctx.user_id, now
            action = AuditAction.SALARY_PERIOD_CLOSED
            notes = optional_text(reason)
        else:
            ctx.require(Capability.REOPEN_CLOSED_PERIODS)
            notes = optional_text(reason)
            if not notes:
                raise ValidationError("A reason is required to reopen a closed period")
            new_status, closed_by, closed_at = SalaryPeriodStatus.OPEN, None, None
            action = AuditAction.SALARY_PERIOD_REOPENED

        if not self._periods.set_status(
            period_id=period.period_id, status=new_status, closed_by=closed_by, closed_at=closed_at
        ):
            raise ConflictError("Salary period could not be updated")

        self._audit.record(
            entity_type="salary_period",
            entity_id=period.period_id,
            action=action,
            performed_by=ctx.user_id,
            previous_values={"status": period.status},
            new_values={"status": new_status},
            notes=notes,
        )
        logger.info("Salary period %s -> %s by %s", period.period_id, new_status.value, ctx.user_id)
        return self._require_period(period.period_id)

    def _require_period(self, period_id: int) -> SalaryPeriod:
        period = self._periods.get(int(period_id))
        if not period:
            raise NotFoundError("Salary period not found")
        return period
