from __future__ import annotations

from datetime import date

import pytest

from src.workforce_hub.workforce_hub.audit.model import AuditAction
from src.workforce_hub.workforce_hub.audit.service import AuditService
from src.workforce_hub.workforce_hub.authz.context import AuthorizationContext
from src.workforce_hub.workforce_hub.core.enums import FinalStatus, Role, SalaryPeriodStatus, WorkItemKind
from src.workforce_hub.workforce_hub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.workforce_hub.workforce_hub.payroll.calculator.standard_calculator import StandardPayrollCalculator
from src.workforce_hub.workforce_hub.payroll.service import PayrollService
from src.workforce_hub.workforce_hub.work.model import WorkItem
from tests.fakes import T0, FakeAuditRepo, FakeSalaryPeriodRepo, FakeUserRepo, FakeWorkItemRepo, make_user, money

OVERSEER, FINANCE, ALICE, BOB, LEAD = 1, 2, 3, 4, 5


def work_item(item_id, user_id, hours, rate, *, status=FinalStatus.APPROVED, day=3):
    return WorkItem(
        item_id=item_id,
        kind=WorkItemKind.TASK,
        user_id=user_id,
        title=f"Task {item_id}",
        platform=None,
        work_date=date(2026, 2, day),
        description=None,
        hours_worked=money(hours),
        base_rate=money(rate),
        current_rate=money(rate),
        earnings=money("0"),
        final_status=status,
    )


def ctx(user_id, role):
    return AuthorizationContext.for_role(user_id=user_id, role=role)


@pytest.fixture
def env():
    users = FakeUserRepo(
        [
            make_user(OVERSEER, Role.GENERAL_OVERSEER),
            make_user(FINANCE, Role.FINANCE_HR_ADMIN),
            make_user(ALICE, Role.EMPLOYEE, name="Alice"),
            make_user(BOB, Role.EMPLOYEE, name="Bob"),
            make_user(LEAD, Role.TEAM_LEAD),
        ]
    )
    items = FakeWorkItemRepo(users)
    periods = FakeSalaryPeriodRepo()
    audit_repo = FakeAuditRepo()
    service = PayrollService(items, users, periods, AuditService(audit_repo))
    return service, items, periods, audit_repo


def test_calculator_pays_only_approved_items():
    calc = StandardPayrollCalculator()
    assert calc.earnings(work_item(1, ALICE, "7.5", "10.333")) == money("77.50")
    assert calc.payable_hours(work_item(2, ALICE, "8", "10", status=FinalStatus.PENDING)) == 0
    assert calc.earnings(work_item(3, ALICE, "8", "10", status=FinalStatus.REJECTED)) == money("0.00")


def test_calculate_aggregates_per_user_and_sorts_by_earnings(env):
    service, items, _, _ = env
    items.put(work_item(1, ALICE, "8", "10"))
    items.put(work_item(2, ALICE, "2", "10"))
    items.put(work_item(3, BOB, "10", "15"))
    items.put(work_item(4, BOB, "5", "15", status=FinalStatus.PENDING))
    items.put(work_item(5, ALICE, "9", "10", day=20))

    report = service.calculate(ctx(FINANCE, Role.FINANCE_HR_ADMIN), start=date(2026, 2, 1), end=date(2026, 2, 7))

    assert [line.full_name for line in report.lines] == ["Bob", "Alice"]
    bob, alice = report.lines
    assert (bob.total_hours, bob.total_earnings, bob.approved_items) == (money("10"), money("150.00"), 1)
    assert (alice.total_hours, alice.total_earnings, alice.approved_items) == (money("10"), money("100.00"), 2)
    assert report.total_earnings == money("250.00")


def test_calculate_requires_payroll_access(env):
    with pytest.raises(AuthorizationError):
        env[0].calculate(ctx(LEAD, Role.TEAM_LEAD), start=date(2026, 2, 1), end=date(2026, 2, 7))


def test_calculate_rejects_inverted_range(env):
    with pytest.raises(ValidationError):
        env[0].calculate(ctx(FINANCE, Role.FINANCE_HR_ADMIN), start=date(2026, 2, 7), end=date(2026, 2, 1))


def test_calculate_for_period_uses_period_dates(env):
    service, items, _, _ = env
    finance = ctx(FINANCE, Role.FINANCE_HR_ADMIN)
    items.put(work_item(1, ALICE, "4", "20", day=20))
    period_id = service.create_period(finance, name="February 2", start=date(2026, 2, 15), end=date(2026, 2, 28))

    report = service.calculate_for_period(finance, period_id=period_id)

    assert report.start == date(2026, 2, 15)
    assert report.total_earnings == money("80.00")

    with pytest.raises(NotFoundError):
        service.calculate_for_period(finance, period_id=42)


def test_create_period_is_audited(env):
    service, _, periods, audit_repo = env
    period_id = service.create_period(
        ctx(FINANCE, Role.FINANCE_HR_ADMIN), name=" February ", start=date(2026, 2, 1), end=date(2026, 2, 28)
    )

    assert periods.get(period_id).name == "February"
    assert periods.get(period_id).status == SalaryPeriodStatus.OPEN
    entry = audit_repo.entries[-1]
    assert (entry.entity_type, entry.action) == ("salary_period", AuditAction.SALARY_PERIOD_CREATED)


@pytest.mark.parametrize("name", ["", "x" * 121])
def test_create_period_validates_name(env, name):
    with pytest.raises(ValidationError):
        env[0].create_period(ctx(FINANCE, Role.FINANCE_HR_ADMIN), name=name, start=date(2026, 2, 1), end=date(2026, 2, 2))


def test_close_and_reopen(env):
    service, _, _, audit_repo = env
    finance = ctx(FINANCE, Role.FINANCE_HR_ADMIN)
    period_id = service.create_period(finance, name="Feb", start=date(2026, 2, 1), end=date(2026, 2, 28))

    closed = service.toggle_period(finance, period_id=period_id, now=T0)
    assert closed.status == SalaryPeriodStatus.CLOSED
    assert (closed.closed_by, closed.closed_at) == (FINANCE, T0)

    # Only the overseer may reopen, and only with a reason.
    with pytest.raises(AuthorizationError):
        service.toggle_period(finance, period_id=period_id, reason="late report", now=T0)
    overseer = ctx(OVERSEER, Role.GENERAL_OVERSEER)
    with pytest.raises(ValidationError, match="reason is required"):
        service.toggle_period(overseer, period_id=period_id, reason="  ", now=T0)

    reopened = service.toggle_period(overseer, period_id=period_id, reason="late report", now=T0)
    assert reopened.status == SalaryPeriodStatus.OPEN
    assert reopened.closed_by is None
    assert [e.action for e in audit_repo.entries] == [
        AuditAction.SALARY_PERIOD_CREATED,
        AuditAction.SALARY_PERIOD_CLOSED,
        AuditAction.SALARY_PERIOD_REOPENED,
    ]
    assert audit_repo.entries[-1].notes == "late report"
