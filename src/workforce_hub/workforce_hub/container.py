from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.service import AuditService
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .governance.mysql_resolution_repository import MySQLResolutionRequestRepository
from .governance.service import ResolutionService
from .governance.sla_monitor import SlaMonitor
from .messaging.mysql_chat_repository import MySQLChatRepository
from .messaging.service import ChatService
from .notifications.mailer import EmailSender, LoggingEmailSender, ResendEmailSender
from .notifications.model import EventType
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.mysql_outbox_repository import MySQLOutboxRepository
from .notifications.outbox import OutboxDispatcher, OutboxPublisher
from .notifications.service import InAppNotificationService, SlaAlertService, TaskNotificationService
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .payroll.mysql_salary_period_repository import MySQLSalaryPeriodRepository
from .payroll.service import PayrollService
from .roles.mysql_role_approval_repository import MySQLRoleApprovalRepository
from .roles.service import RoleApprovalService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, MpcnIdService, UserAdminService
from .verification.mysql_verification_repository import MySQLVerificationCodeRepository
from .verification.service import PhoneVerificationService
from .verification.sms import LoggingSmsSender, SmsSender, TwilioSmsSender
from .work.mysql_work_item_repository import MySQLWorkItemRepository
from .work.service import WorkItemService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    work_items_repo: MySQLWorkItemRepository
    audit_repo: MySQLAuditRepository
    outbox_repo: MySQLOutboxRepository
    notifications_repo: MySQLNotificationRepository
    role_approvals_repo: MySQLRoleApprovalRepository
    verification_repo: MySQLVerificationCodeRepository
    resolution_repo: MySQLResolutionRequestRepository
    salary_periods_repo: MySQLSalaryPeriodRepository
    chat_repo: MySQLChatRepository

    email_sender: EmailSender
    sms_sender: SmsSender
    outbox_publisher: OutboxPublisher

    auth_service: AuthService
    mpcn_id_service: MpcnIdService
    user_admin_service: UserAdminService
    audit_service: AuditService
    work_item_service: WorkItemService
    task_notification_service: TaskNotificationService
    sla_alert_service: SlaAlertService
    in_app_notification_service: InAppNotificationService
    role_approval_service: RoleApprovalService
    phone_verification_service: PhoneVerificationService
    resolution_service: ResolutionService
    sla_monitor: SlaMonitor
    payroll_service: PayrollService
    chat_service: ChatService
    outbox_dispatcher: OutboxDispatcher


def build_email_sender(settings: Any) -> EmailSender:
    api_key = getattr(settings, "RESEND_API_KEY", "")
    if not api_key:
        return LoggingEmailSender()
    return ResendEmailSender(api_key, getattr(settings, "MAIL_FROM", "Workforce Hub <noreply@workforce.local>"))


def build_sms_sender(settings: Any) -> SmsSender:
    sid = getattr(settings, "TWILIO_ACCOUNT_SID", "")
    token = getattr(settings, "TWILIO_AUTH_TOKEN", "")
    number = getattr(settings, "TWILIO_PHONE_NUMBER", "")
    if not (sid and token and number):
        return LoggingSmsSender()
    return TwilioSmsSender(sid, token, number)


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    public_base_url = getattr(settings, "PUBLIC_BASE_URL", "http://localhost:5000")

    users_repo = MySQLUserRepository(conn)
    work_items_repo = MySQLWorkItemRepository(conn)
    audit_repo = MySQLAuditRepository(conn)
    outbox_repo = MySQLOutboxRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)
    role_approvals_repo = MySQLRoleApprovalRepository(conn)
    verification_repo = MySQLVerificationCodeRepository(conn)
    resolution_repo = MySQLResolutionRequestRepository(conn)
    salary_periods_repo = MySQLSalaryPeriodRepository(conn)
    chat_repo = MySQLChatRepository(conn)

    email_sender = build_email_sender(settings)
    sms_sender = build_sms_sender(settings)
    outbox_publisher = OutboxPublisher(outbox_repo)

    audit_service = AuditService(audit_repo)
    task_notification_service = TaskNotificationService(users_repo, email_sender)
    sla_alert_service = SlaAlertService(
        users_repo, notifications_repo, email_sender, public_base_url=public_base_url
    )
    role_approval_service = RoleApprovalService(
        role_approvals_repo,
        users_repo,
        audit_service,
        outbox_publisher,
        email_sender,
        public_base_url=public_base_url,
        ttl_hours=int(getattr(settings, "ROLE_APPROVAL_TTL_HOURS", constants.ROLE_APPROVAL_TTL_HOURS)),
    )
    outbox_dispatcher = OutboxDispatcher(
        outbox_repo,
        {
            EventType.TASK_NOTIFICATION: task_notification_service.handle_event,
            EventType.SLA_ALERT: sla_alert_service.handle_event,
            EventType.ROLE_APPROVAL_REQUEST: role_approval_service.send_request_email,
        },
        max_attempts=int(getattr(settings, "OUTBOX_MAX_ATTEMPTS", constants.OUTBOX_MAX_ATTEMPTS)),
        batch_size=int(getattr(settings, "OUTBOX_BATCH_SIZE", constants.OUTBOX_BATCH_SIZE)),
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        work_items_repo=work_items_repo,
        audit_repo=audit_repo,
        outbox_repo=outbox_repo,
        notifications_repo=notifications_repo,
        role_approvals_repo=role_approvals_repo,
        verification_repo=verification_repo,
        resolution_repo=resolution_repo,
        salary_periods_repo=salary_periods_repo,
        chat_repo=chat_repo,
        email_sender=email_sender,
        sms_sender=sms_sender,
        outbox_publisher=outbox_publisher,
        auth_service=AuthService(users_repo),
        mpcn_id_service=MpcnIdService(users_repo),
        user_admin_service=UserAdminService(users_repo, audit_service),
        audit_service=audit_service,
        work_item_service=WorkItemService(work_items_repo, users_repo, audit_service, outbox_publisher),
        task_notification_service=task_notification_service,
        sla_alert_service=sla_alert_service,
        in_app_notification_service=InAppNotificationService(notifications_repo),
        role_approval_service=role_approval_service,
        phone_verification_service=PhoneVerificationService(verification_repo, users_repo, sms_sender),
        resolution_service=ResolutionService(resolution_repo, audit_service),
        sla_monitor=SlaMonitor(resolution_repo, users_repo, outbox_publisher),
        payroll_service=PayrollService(
            work_items_repo,
            users_repo,
            salary_periods_repo,
            audit_service,
            calculator=StandardPayrollCalculator(),
        ),
        chat_service=ChatService(chat_repo, users_repo),
        outbox_dispatcher=outbox_dispatcher,
    )
