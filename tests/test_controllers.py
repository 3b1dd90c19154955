from __future__ import annotations

from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from src.workforce_hub.workforce_hub.audit.service import AuditService
from src.workforce_hub.workforce_hub.core.enums import Role
from src.workforce_hub.workforce_hub.governance.service import ResolutionService
from src.workforce_hub.workforce_hub.main import create_app
from src.workforce_hub.workforce_hub.messaging.service import ChatService
from src.workforce_hub.workforce_hub.notifications.outbox import OutboxPublisher
from src.workforce_hub.workforce_hub.notifications.service import (
    InAppNotificationService,
    SlaAlertService,
    TaskNotificationService,
)
from src.workforce_hub.workforce_hub.payroll.service import PayrollService
from src.workforce_hub.workforce_hub.roles.service import RoleApprovalService
from src.workforce_hub.workforce_hub.users.service import AuthService, MpcnIdService, UserAdminService
from src.workforce_hub.workforce_hub.verification.service import PhoneVerificationService
from src.workforce_hub.workforce_hub.work.service import WorkItemService
from tests.fakes import (
    FakeAuditRepo,
    FakeChatRepo,
    FakeNotificationRepo,
    FakeOutboxRepo,
    FakeResolutionRepo,
    FakeRoleApprovalRepo,
    FakeSalaryPeriodRepo,
    FakeUserRepo,
    FakeVerificationRepo,
    FakeWorkItemRepo,
    RecordingEmailSender,
    RecordingSmsSender,
    make_user,
)

PASSWORD = "s3cret-pass"
OVERSEER, LEAD, EMPLOYEE = 1, 2, 3


@pytest.fixture
def sender():
    return RecordingEmailSender()


@pytest.fixture
def client(monkeypatch, sender):
    monkeypatch.setenv("APP_ENV", "testing")
    hashed = generate_password_hash(PASSWORD)
    users = FakeUserRepo(
        [
            make_user(OVERSEER, Role.GENERAL_OVERSEER, password_hash=hashed),
            make_user(LEAD, Role.TEAM_LEAD, name="Lead", password_hash=hashed),
            make_user(EMPLOYEE, Role.EMPLOYEE, name="Emma", team_lead_id=LEAD, password_hash=hashed),
        ]
    )
    audit = AuditService(FakeAuditRepo())
    publisher = OutboxPublisher(FakeOutboxRepo())
    notifications = FakeNotificationRepo()
    items = FakeWorkItemRepo(users)
    container = SimpleNamespace(
        auth_service=AuthService(users),
        mpcn_id_service=MpcnIdService(users),
        user_admin_service=UserAdminService(users, audit),
        audit_service=audit,
        work_item_service=WorkItemService(items, users, audit, publisher),
        task_notification_service=TaskNotificationService(users, sender),
        sla_alert_service=SlaAlertService(users, notifications, sender, public_base_url="http://testserver"),
        in_app_notification_service=InAppNotificationService(notifications),
        role_approval_service=RoleApprovalService(
            FakeRoleApprovalRepo(users), users, audit, publisher, sender, public_base_url="http://testserver"
        ),
        phone_verification_service=PhoneVerificationService(FakeVerificationRepo(), users, RecordingSmsSender()),
        resolution_service=ResolutionService(FakeResolutionRepo(), audit),
        payroll_service=PayrollService(items, users, FakeSalaryPeriodRepo(), audit),
        chat_service=ChatService(FakeChatRepo(), users),
    )
    app = create_app(container=container)
    assert app.config["TESTING"] is True
    return app.test_client()


def login(client, user_id):
    return client.post("/login", json={"identifier": f"user{user_id}@workforce.local", "password": PASSWORD})


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_login_required(client):
    resp = client.get("/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}


def test_wrong_password(client):
    resp = client.post("/login", json={"identifier": "user3@workforce.local", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Incorrect password. Please try again."


def test_login_then_me_and_logout(client):
    resp = login(client, EMPLOYEE)
    assert resp.status_code == 200
    assert resp.get_json()["role"] == "employee"

    me = client.get("/me").get_json()
    assert me["full_name"] == "Emma"
    assert "submit_reports" in me["capabilities"]
    assert me["authority_tier"] == 3
    assert me["role_display_name"] == "Team Member"

    client.post("/logout")
    assert client.get("/me").status_code == 401


def test_form_login(client):
    resp = client.post("/login", data={"email": "user2@workforce.local", "password": PASSWORD})
    assert resp.status_code == 200


def test_submit_and_review_flow(client):
    login(client, EMPLOYEE)
    resp = client.post(
        "/work/reports",
        json={"title": "Daily log", "work_date": "2026-02-02", "hours_worked": "7.5", "base_rate": "10.333"},
    )
    assert resp.status_code == 201
    item_id = resp.get_json()["id"]

    item = client.get(f"/work/items/{item_id}").get_json()
    assert item["earnings"] == "77.48"
    assert item["final_status"] == "pending"

    assert client.post(f"/work/items/{item_id}/override", json={"decision": "approved", "reason": "x"}).status_code == 403

    login(client, LEAD)
    missing_reason = client.post(f"/work/items/{item_id}/team-lead-review", json={"decision": "rejected"})
    assert missing_reason.status_code == 400

    approved = client.post(f"/work/items/{item_id}/team-lead-review", json={"decision": "approved"})
    assert approved.status_code == 200
    assert approved.get_json()["final_status"] == "approved"

    again = client.post(f"/work/items/{item_id}/team-lead-review", json={"decision": "rejected", "reason": "late"})
    assert again.status_code == 409


def test_unknown_kind_and_item(client):
    login(client, EMPLOYEE)
    assert client.get("/work/expenses/mine").status_code == 404
    assert client.get("/work/items/999").status_code == 404


def test_hours_over_a_day_rejected(client):
    login(client, EMPLOYEE)
    resp = client.post(
        "/work/tasks", json={"title": "Too long", "work_date": "2026-02-02", "hours_worked": "25", "base_rate": "10"}
    )
    assert resp.status_code == 400
    assert "24" in resp.get_json()["error"]


def test_task_notification_endpoint_is_capability_gated(client, sender):
    payload = {"type": "task", "action": "approved", "userId": EMPLOYEE, "itemTitle": "Ship it", "workDate": "2026-02-02"}

    login(client, EMPLOYEE)
    assert client.post("/functions/send-task-notification", json=payload).status_code == 403
    assert sender.sent == []

    login(client, LEAD)
    resp = client.post("/functions/send-task-notification", json=payload)
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "messageId": "msg-1"}
    assert sender.sent[0].to == ["user3@workforce.local"]


def test_resolve_mpcn_id_needs_no_session(client):
    resp = client.post("/functions/resolve-mpcn-id", json={"mpcn_id": "MPCN-00000003"})
    assert resp.status_code == 200
    assert resp.get_json() == {"email": "user3@workforce.local", "masked_email": "u****@workforce.local"}

    assert client.post("/functions/resolve-mpcn-id", json={}).status_code == 400


def test_process_role_approval_renders_html_error(client):
    resp = client.get("/functions/process-role-approval?token=missing&action=approve")
    assert resp.status_code == 404
    assert resp.headers["Content-Type"].startswith("text/html")
    assert b"Unable to process request" in resp.data
