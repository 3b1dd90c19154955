from __future__ import annotations

from datetime import timedelta

import pytest

from src.workforce_hub.workforce_hub.audit.model import AuditAction
from src.workforce_hub.workforce_hub.audit.service import AuditService
from src.workforce_hub.workforce_hub.authz.context import AuthorizationContext
from src.workforce_hub.workforce_hub.core.enums import Role, RoleApprovalStatus
from src.workforce_hub.workforce_hub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.workforce_hub.workforce_hub.notifications.model import EventType
from src.workforce_hub.workforce_hub.notifications.outbox import OutboxPublisher
from src.workforce_hub.workforce_hub.roles.service import RoleApprovalService
from tests.fakes import (
    T0,
    FakeAuditRepo,
    FakeOutboxRepo,
    FakeRoleApprovalRepo,
    FakeUserRepo,
    RecordingEmailSender,
    make_user,
)

OVERSEER, USER_ADMIN, TARGET, EMPLOYEE = 1, 2, 3, 4


@pytest.fixture
def env():
    users = FakeUserRepo(
        [
            make_user(OVERSEER, Role.GENERAL_OVERSEER, name="Grace"),
            make_user(USER_ADMIN, Role.USER_ADMIN, name="Uma"),
            make_user(TARGET, Role.REPORT_ADMIN, name="Tom"),
            make_user(EMPLOYEE, Role.EMPLOYEE),
        ]
    )
    approvals = FakeRoleApprovalRepo(users)
    outbox = FakeOutboxRepo()
    audit_repo = FakeAuditRepo()
    sender = RecordingEmailSender()
    service = RoleApprovalService(
        approvals,
        users,
        AuditService(audit_repo),
        OutboxPublisher(outbox),
        sender,
        public_base_url="https://hub.example/",
    )
    return service, users, approvals, outbox, audit_repo, sender


def admin_ctx():
    return AuthorizationContext.for_role(user_id=USER_ADMIN, role=Role.USER_ADMIN, full_name="Uma")


def request_token(service, approvals):
    approval_id = service.request_transfer(admin_ctx(), target_user_id=TARGET, now=T0)
    return approvals.approvals[approval_id].token


def test_request_queues_email_event_for_overseer(env):
    service, _, approvals, outbox, _, sender = env
    approval_id = service.request_transfer(admin_ctx(), target_user_id=TARGET, target_user_name="Tom", now=T0)

    approval = approvals.approvals[approval_id]
    assert approval.status == RoleApprovalStatus.PENDING
    assert approval.expires_at == T0 + timedelta(hours=24)

    (event,) = outbox.of_type(EventType.ROLE_APPROVAL_REQUEST)
    assert event.payload["overseerEmail"] == "user1@workforce.local"
    assert event.payload["token"] == approval.token

    service.send_request_email(event.payload)
    message = sender.sent[0]
    assert message.to == ["user1@workforce.local"]
    assert "https://hub.example/functions/process-role-approval?token=" in message.html
    assert "action=approve" in message.html
    assert "action=reject" in message.html


def test_only_user_admin_or_overseer_may_request(env):
    service = env[0]
    ctx = AuthorizationContext.for_role(user_id=EMPLOYEE, role=Role.EMPLOYEE)
    with pytest.raises(AuthorizationError):
        service.request_transfer(ctx, target_user_id=TARGET, now=T0)


def test_one_pending_request_per_target(env):
    service, _, approvals, _, _, _ = env
    request_token(service, approvals)
    with pytest.raises(ValidationError, match="pending approval request already exists"):
        service.request_transfer(admin_ctx(), target_user_id=TARGET, now=T0)


def test_unknown_target(env):
    service = env[0]
    with pytest.raises(NotFoundError):
        service.request_transfer(admin_ctx(), target_user_id=99, now=T0)


def test_approve_transfers_role_and_second_use_is_refused(env):
    service, users, approvals, _, audit_repo, _ = env
    token = request_token(service, approvals)

    outcome = service.process(token=token, action="approve", now=T0 + timedelta(hours=1))
    assert outcome.status == RoleApprovalStatus.APPROVED
    assert users.get_by_id(TARGET).role == Role.GENERAL_OVERSEER
    assert users.get_by_id(OVERSEER).role == Role.USER_ADMIN
    assert audit_repo.entries[-1].action == AuditAction.ROLE_TRANSFER

    with pytest.raises(ValidationError, match="already been approved"):
        service.process(token=token, action="reject", now=T0 + timedelta(hours=2))
    assert users.get_by_id(TARGET).role == Role.GENERAL_OVERSEER
    assert users.get_by_id(OVERSEER).role == Role.USER_ADMIN


def test_approve_without_a_current_overseer_is_refused(env):
    service, users, approvals, _, audit_repo, _ = env
    token = request_token(service, approvals)
    users.set_role(OVERSEER, Role.USER_ADMIN)
    audited = len(audit_repo.entries)

    with pytest.raises(ValidationError, match="No General Overseer found"):
        service.process(token=token, action="approve", now=T0 + timedelta(hours=1))

    (approval,) = approvals.approvals.values()
    assert approval.status == RoleApprovalStatus.PENDING
    assert users.get_by_id(TARGET).role == Role.REPORT_ADMIN
    assert len(audit_repo.entries) == audited


def test_reject_leaves_roles_untouched(env):
    service, users, approvals, _, _, _ = env
    token = request_token(service, approvals)

    outcome = service.process(token=token, action="reject", now=T0 + timedelta(minutes=5))

    assert outcome.status == RoleApprovalStatus.REJECTED
    assert users.get_by_id(OVERSEER).role == Role.GENERAL_OVERSEER
    assert users.get_by_id(TARGET).role == Role.REPORT_ADMIN


def test_expired_token_is_marked_expired(env):
    service, users, approvals, _, _, _ = env
    token = request_token(service, approvals)

    with pytest.raises(ValidationError, match="expired"):
        service.process(token=token, action="approve", now=T0 + timedelta(hours=25))

    assert approvals.get_by_token(token).status == RoleApprovalStatus.EXPIRED
    assert users.get_by_id(OVERSEER).role == Role.GENERAL_OVERSEER


@pytest.mark.parametrize(
    "token, action, error",
    [
        (None, "approve", ValidationError),
        ("abc", None, ValidationError),
        ("abc", "promote", ValidationError),
        ("unknown-token", "approve", NotFoundError),
    ],
)
def test_bad_process_input(env, token, action, error):
    with pytest.raises(error):
        env[0].process(token=token, action=action, now=T0)
