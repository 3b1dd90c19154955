from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.workforce_hub.workforce_hub.audit.model import AuditAction
from src.workforce_hub.workforce_hub.audit.service import AuditService
from src.workforce_hub.workforce_hub.authz.context import AuthorizationContext
from src.workforce_hub.workforce_hub.core.enums import Decision, FinalStatus, Role, WorkItemKind
from src.workforce_hub.workforce_hub.core.exceptions import AuthorizationError, ConflictError, ValidationError
from src.workforce_hub.workforce_hub.notifications.model import EventType
from src.workforce_hub.workforce_hub.notifications.outbox import OutboxPublisher
from src.workforce_hub.workforce_hub.work.rules import has_consistent_final_status, is_overridable
from src.workforce_hub.workforce_hub.work.service import WorkItemService
from tests.fakes import T0, FakeAuditRepo, FakeOutboxRepo, FakeUserRepo, FakeWorkItemRepo, make_user

EMPLOYEE, TEAM_LEAD, OTHER_LEAD, REPORT_ADMIN, FINANCE, OVERSEER = 3, 2, 5, 4, 6, 1


def ctx(user_id, role, name=""):
    return AuthorizationContext.for_role(user_id=user_id, role=role, full_name=name or f"User {user_id}")


@pytest.fixture
def env():
    users = FakeUserRepo(
        [
            make_user(OVERSEER, Role.GENERAL_OVERSEER),
            make_user(TEAM_LEAD, Role.TEAM_LEAD, name="Lead"),
            make_user(EMPLOYEE, Role.EMPLOYEE, team_lead_id=TEAM_LEAD),
            make_user(REPORT_ADMIN, Role.REPORT_ADMIN, name="Admin"),
            make_user(OTHER_LEAD, Role.TEAM_LEAD),
            make_user(FINANCE, Role.FINANCE_HR_ADMIN),
        ]
    )
    items = FakeWorkItemRepo(users)
    audit_repo = FakeAuditRepo()
    outbox = FakeOutboxRepo()
    service = WorkItemService(items, users, AuditService(audit_repo), OutboxPublisher(outbox))
    return service, items, audit_repo, outbox


def submit_report(service, **overrides):
    args = dict(
        kind=WorkItemKind.REPORT,
        title="Weekly report",
        work_date=date(2026, 2, 1),
        hours_worked="8",
        base_rate="12.50",
        platform="Upwork",
    )
    args.update(overrides)
    return service.submit(ctx(EMPLOYEE, Role.EMPLOYEE), **args)


def test_reject_then_admin_override_approves_and_queues_two_notifications(env):
    service, items, audit_repo, outbox = env
    item_id = submit_report(service)

    rejected = service.review_as_team_lead(
        ctx(TEAM_LEAD, Role.TEAM_LEAD, "Lead"), item_id=item_id, decision="rejected", reason="add link", now=T0
    )
    assert rejected.final_status == FinalStatus.PENDING
    assert rejected.team_lead_status == Decision.REJECTED
    assert rejected.team_lead_rejection_reason == "add link"
    assert is_overridable(rejected)

    approved = service.override(
        ctx(REPORT_ADMIN, Role.REPORT_ADMIN, "Admin"), item_id=item_id, decision="approved", reason="link verified", now=T0
    )
    assert approved.final_status == FinalStatus.APPROVED
    assert approved.admin_status == Decision.APPROVED
    assert approved.admin_reason == "link verified"
    assert has_consistent_final_status(approved)

    events = outbox.of_type(EventType.TASK_NOTIFICATION)
    assert len(events) == 2
    assert events[0].payload["action"] == "rejected"
    assert events[0].payload["isOverride"] is False
    assert events[0].payload["reason"] == "add link"
    assert events[1].payload["action"] == "approved"
    assert events[1].payload["isOverride"] is True
    assert events[1].payload["reviewerName"] == "Admin"

    actions = [e.action for e in audit_repo.entries]
    assert actions == [AuditAction.SUBMIT, AuditAction.TEAM_LEAD_REVIEW, AuditAction.ADMIN_OVERRIDE]


def test_team_lead_approval_finalizes_and_blocks_second_review(env):
    service, items, _, _ = env
    item_id = submit_report(service)
    lead = ctx(TEAM_LEAD, Role.TEAM_LEAD)

    item = service.review_as_team_lead(lead, item_id=item_id, decision=Decision.APPROVED, now=T0)
    assert item.final_status == FinalStatus.APPROVED
    assert item.team_lead_status == Decision.APPROVED

    with pytest.raises(ConflictError):
        service.review_as_team_lead(lead, item_id=item_id, decision=Decision.REJECTED, reason="late", now=T0)
    assert items.get(item_id).final_status == FinalStatus.APPROVED


def test_rejection_requires_reason(env):
    service, items, audit_repo, outbox = env
    item_id = submit_report(service)

    with pytest.raises(ValidationError):
        service.review_as_team_lead(ctx(TEAM_LEAD, Role.TEAM_LEAD), item_id=item_id, decision="rejected", reason="  ")

    assert items.get(item_id).team_lead_status is None
    assert len(audit_repo.entries) == 1
    assert outbox.events == {}


def test_team_lead_cannot_review_other_team(env):
    service, _, _, _ = env
    item_id = submit_report(service)
    with pytest.raises(AuthorizationError):
        service.review_as_team_lead(ctx(OTHER_LEAD, Role.TEAM_LEAD), item_id=item_id, decision="approved")


def test_employee_cannot_review(env):
    service, _, _, _ = env
    item_id = submit_report(service)
    with pytest.raises(AuthorizationError):
        service.review_as_team_lead(ctx(EMPLOYEE, Role.EMPLOYEE), item_id=item_id, decision="approved")


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_overseer_override_without_reason_is_rejected_before_write(env, reason):
    service, items, audit_repo, outbox = env
    item_id = submit_report(service)
    before = items.get(item_id)

    with pytest.raises(ValidationError):
        service.override(ctx(OVERSEER, Role.GENERAL_OVERSEER), item_id=item_id, decision="approved", reason=reason)

    assert items.get(item_id) == before
    assert len(audit_repo.entries) == 1
    assert outbox.events == {}


def test_admin_cannot_override_finalized_item_but_overseer_can(env):
    service, items, _, _ = env
    item_id = submit_report(service)
    service.review_as_team_lead(ctx(TEAM_LEAD, Role.TEAM_LEAD), item_id=item_id, decision="approved", now=T0)

    with pytest.raises(ConflictError):
        service.override(ctx(REPORT_ADMIN, Role.REPORT_ADMIN), item_id=item_id, decision="rejected", reason="dup")

    item = service.override(
        ctx(OVERSEER, Role.GENERAL_OVERSEER), item_id=item_id, decision="rejected", reason="duplicate of #4", now=T0
    )
    assert item.final_status == FinalStatus.REJECTED
    assert item.admin_status == Decision.REJECTED
    assert item.team_lead_status == Decision.APPROVED


def test_submit_rejects_more_than_24_hours(env):
    service, _, _, _ = env
    with pytest.raises(ValidationError, match="24"):
        submit_report(service, hours_worked="25")
    with pytest.raises(ValidationError):
        submit_report(service, hours_worked="24.01")


@pytest.mark.parametrize("rate", ["1e30", "100000000", "1e9", "NaN", "Infinity"])
def test_submit_rejects_rates_that_cannot_be_stored(env, rate):
    service, items, audit_repo, _ = env
    with pytest.raises(ValidationError):
        submit_report(service, base_rate=rate)
    assert items.list_items() == []
    assert audit_repo.entries == []


def test_submit_computes_earnings(env):
    service, items, _, _ = env
    item_id = submit_report(service, hours_worked="7.5", base_rate="10.333")
    item = items.get(item_id)
    assert item.current_rate == Decimal("10.33")
    assert item.earnings == Decimal("77.48")


def test_submit_rounds_rate_and_hours_to_cents_before_computing_earnings(env):
    service, items, _, _ = env
    item = items.get(submit_report(service, hours_worked="8", base_rate="12.345"))
    assert item.base_rate == Decimal("12.35")
    assert item.current_rate == Decimal("12.35")
    assert item.earnings == Decimal("98.80")
    assert item.earnings == (item.hours_worked * item.current_rate).quantize(Decimal("0.01"))

    item = items.get(submit_report(service, hours_worked="7.333", base_rate="10"))
    assert item.hours_worked == Decimal("7.33")
    assert item.earnings == Decimal("73.30")


def test_rate_change_by_overseer_needs_reason(env):
    service, items, _, _ = env
    item_id = submit_report(service)
    with pytest.raises(ValidationError):
        service.adjust_rate(ctx(OVERSEER, Role.GENERAL_OVERSEER), item_id=item_id, new_rate="20", reason=" ")
    assert items.get(item_id).current_rate == Decimal("12.50")


def test_rate_change_on_pending_item_recomputes_earnings_and_audits(env):
    service, _, audit_repo, _ = env
    item_id = submit_report(service)

    item = service.adjust_rate(ctx(FINANCE, Role.FINANCE_HR_ADMIN), item_id=item_id, new_rate="15")
    assert item.current_rate == Decimal("15")
    assert item.base_rate == Decimal("12.50")
    assert item.earnings == Decimal("120.00")

    entry = audit_repo.entries[-1]
    assert entry.action == AuditAction.RATE_OVERRIDE
    assert entry.previous_values["current_rate"] == Decimal("12.50")
    assert entry.new_values["earnings"] == Decimal("120.00")


def test_rate_change_on_approved_item_needs_overseer(env):
    service, _, _, _ = env
    item_id = submit_report(service)
    service.review_as_team_lead(ctx(TEAM_LEAD, Role.TEAM_LEAD), item_id=item_id, decision="approved", now=T0)

    with pytest.raises(ConflictError):
        service.adjust_rate(ctx(FINANCE, Role.FINANCE_HR_ADMIN), item_id=item_id, new_rate="15")

    item = service.adjust_rate(
        ctx(OVERSEER, Role.GENERAL_OVERSEER), item_id=item_id, new_rate="15", reason="contract rate"
    )
    assert item.earnings == Decimal("120.00")


def test_negative_rate_is_rejected(env):
    service, _, _, _ = env
    item_id = submit_report(service)
    with pytest.raises(ValidationError):
        service.adjust_rate(ctx(FINANCE, Role.FINANCE_HR_ADMIN), item_id=item_id, new_rate="-1")


def test_rate_change_is_bounded_and_rounded(env):
    service, items, _, _ = env
    item_id = submit_report(service)
    finance = ctx(FINANCE, Role.FINANCE_HR_ADMIN)
    with pytest.raises(ValidationError):
        service.adjust_rate(finance, item_id=item_id, new_rate="1e30")
    assert items.get(item_id).current_rate == Decimal("12.50")

    item = service.adjust_rate(finance, item_id=item_id, new_rate="12.345")
    assert item.current_rate == Decimal("12.35")
    assert item.earnings == Decimal("98.80")


def test_failed_publish_does_not_block_review():
    users = FakeUserRepo(
        [make_user(TEAM_LEAD, Role.TEAM_LEAD), make_user(EMPLOYEE, Role.EMPLOYEE, team_lead_id=TEAM_LEAD)]
    )
    items = FakeWorkItemRepo(users)
    service = WorkItemService(items, users, AuditService(FakeAuditRepo()), OutboxPublisher(FakeOutboxRepo(fail_insert=True)))
    item_id = submit_report(service)

    item = service.review_as_team_lead(ctx(TEAM_LEAD, Role.TEAM_LEAD), item_id=item_id, decision="approved", now=T0)
    assert item.final_status == FinalStatus.APPROVED


def test_review_queue_shows_only_overridable_items_to_admins(env):
    service, _, _, _ = env
    lead = ctx(TEAM_LEAD, Role.TEAM_LEAD)
    rejected_id = submit_report(service, title="needs fix")
    approved_id = submit_report(service, title="fine")
    untouched_id = submit_report(service, title="new")
    service.review_as_team_lead(lead, item_id=rejected_id, decision="rejected", reason="missing link", now=T0)
    service.review_as_team_lead(lead, item_id=approved_id, decision="approved", now=T0)

    admin_queue = service.list_review_queue(ctx(REPORT_ADMIN, Role.REPORT_ADMIN), kind=WorkItemKind.REPORT)
    assert [i.item_id for i in admin_queue] == [rejected_id]

    lead_queue = service.list_review_queue(lead, kind=WorkItemKind.REPORT)
    assert [i.item_id for i in lead_queue] == [untouched_id]


class LosingWorkItemRepo(FakeWorkItemRepo):
    """Another reviewer always commits between our read and our conditional write."""

    def apply_team_lead_review(self, **kwargs):
        return False

    def apply_override(self, **kwargs):
        return False

    def update_rate(self, **kwargs):
        return False


@pytest.mark.parametrize(
    "act",
    [
        lambda s, i: s.review_as_team_lead(ctx(TEAM_LEAD, Role.TEAM_LEAD), item_id=i, decision="approved", now=T0),
        lambda s, i: s.override(ctx(REPORT_ADMIN, Role.REPORT_ADMIN), item_id=i, decision="approved", reason="ok", now=T0),
        lambda s, i: s.adjust_rate(ctx(FINANCE, Role.FINANCE_HR_ADMIN), item_id=i, new_rate="20"),
    ],
    ids=["team_lead_review", "override", "adjust_rate"],
)
def test_lost_conditional_write_is_a_conflict_without_audit_or_email(act):
    users = FakeUserRepo(
        [
            make_user(TEAM_LEAD, Role.TEAM_LEAD),
            make_user(EMPLOYEE, Role.EMPLOYEE, team_lead_id=TEAM_LEAD),
            make_user(REPORT_ADMIN, Role.REPORT_ADMIN),
            make_user(FINANCE, Role.FINANCE_HR_ADMIN),
        ]
    )
    items = LosingWorkItemRepo(users)
    audit_repo = FakeAuditRepo()
    outbox = FakeOutboxRepo()
    service = WorkItemService(items, users, AuditService(audit_repo), OutboxPublisher(outbox))
    item_id = submit_report(service)
    audited = len(audit_repo.entries)

    with pytest.raises(ConflictError, match="changed by another reviewer"):
        act(service, item_id)

    assert len(audit_repo.entries) == audited
    assert outbox.of_type(EventType.TASK_NOTIFICATION) == []
    item = items.get(item_id)
    assert item.final_status == FinalStatus.PENDING
    assert item.current_rate == Decimal("12.50")
