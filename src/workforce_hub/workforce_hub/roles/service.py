from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..authz.context import AuthorizationContext
from ..authz.hierarchy import ROLE_TRANSFER_REQUESTER_ROLES
from ..common.datetime_utils import parse_iso_datetime, utc_now
from ..common.templates import render
from ..core.constants import ROLE_APPROVAL_TTL_HOURS
from ..core.enums import Role, RoleApprovalStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.mailer import EmailMessage, EmailSender
from ..notifications.model import EventType
from ..notifications.outbox import OutboxPublisher
from ..users.repository import UserRepository
from .repository import RoleApprovalRepository

logger = logging.getLogger(__name__)

ACTIONS = ("approve", "reject")


@dataclass(frozen=True)
class ApprovalOutcome:
    status: RoleApprovalStatus
    title: str
    message: str


class RoleApprovalService:
    """Use case: transfer the General Overseer role with the current overseer's consent.

    ``request_transfer`` stores a pending approval with a random token and
    queues an email to the overseer; ``process`` consumes the token exactly once.
    """

    def __init__(
        self,
        approvals: RoleApprovalRepository,
        users: UserRepository,
        audit: AuditService,
        publisher: OutboxPublisher,
        sender: EmailSender,
        *,
        public_base_url: str = "",
        ttl_hours: int = ROLE_APPROVAL_TTL_HOURS,
    ):
        self._approvals = approvals
        self._users = users
        self._audit = audit
        self._publisher = publisher
        self._sender = sender
        self._public_base_url = public_base_url.rstrip("/")
        self._ttl = timedelta(hours=int(ttl_hours))

    def request_transfer(
        self,
        ctx: AuthorizationContext,
        *,
        target_user_id,
        target_user_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        if ctx.role not in ROLE_TRANSFER_REQUESTER_ROLES:
            raise AuthorizationError("Unauthorized - admin role required")
        if not target_user_id:
            raise ValidationError("Target user ID is required")

        overseer = self._users.get_current_overseer()
        if not overseer or not overseer.email:
            raise ValidationError("No General Overseer found in the system")

        target = self._users.get_by_id(int(target_user_id))
        if not target or not target.email:
            raise NotFoundError("Target user not found")
        if target.role == Role.GENERAL_OVERSEER:
            raise ValidationError("This user is already the General Overseer")

        if self._approvals.has_pending_for_target(target.user_id):
            raise ValidationError("A pending approval request already exists for this user")

        now = now or utc_now()
        token = secrets.token_urlsafe(32)
        expires_at = now + self._ttl
        approval_id = self._approvals.create(
            token=token,
            requested_by=ctx.user_id,
            target_user_id=target.user_id,
            target_user_name=(target_user_name or "").strip() or target.full_name,
            current_overseer_id=overseer.user_id,
            expires_at=expires_at,
        )

        self._publisher.publish(
            EventType.ROLE_APPROVAL_REQUEST,
            {
                "approvalId": approval_id,
                "token": token,
                "overseerEmail": overseer.email,
                "requesterName": ctx.full_name,
                "targetUserName": (target_user_name or "").strip() or target.full_name,
                "expiresAt": expires_at.isoformat(),
            },
            now=now,
        )
        logger.info("Role approval %s requested by %s for user %s", approval_id, ctx.user_id, target.user_id)
        return approval_id

    def send_request_email(self, payload: dict) -> str:
        """Outbox handler for ``role_approval_request`` events."""
        token = payload["token"]
        expires_at = parse_iso_datetime(payload.get("expiresAt"), "expiresAt")
        html = render(
            "emails/role_approval_request.html",
            requester_name=payload.get("requesterName") or "An administrator",
            target_user_name=payload.get("targetUserName") or "a user",
            approve_url=self.action_url(token, "approve"),
            reject_url=self.action_url(token, "reject"),
            expires_display=expires_at.strftime("%Y-%m-%d %H:%M UTC"),
        )
        return self._sender.send(
            EmailMessage(
                to=[payload["overseerEmail"]],
                subject="General Overseer Role Assignment Approval Required",
                html=html,
            )
        )

    def action_url(self, token: str, action: str) -> str:
        query = urlencode({"token": token, "action": action})
        return f"{self._public_base_url}/functions/process-role-approval?{query}"

    def process(self, *, token: Optional[str], action: Optional[str], now: Optional[datetime] = None) -> ApprovalOutcome:
        if not token or not action:
            raise ValidationError("Missing token or action")
        if action not in ACTIONS:
            raise ValidationError("Invalid action")

        approval = self._approvals.get_by_token(token)
        if not approval:
            raise NotFoundError("Invalid or expired approval token")
        if approval.status != RoleApprovalStatus.PENDING:
            raise ValidationError(f"This request has already been {approval.status.value}")

        now = now or utc_now()
        if approval.is_expired(now):
            self._approvals.resolve(approval_id=approval.approval_id, status=RoleApprovalStatus.EXPIRED, processed_at=now)
            raise ValidationError("This approval request has expired")

        if action == "reject":
            if not self._approvals.resolve(
                approval_id=approval.approval_id, status=RoleApprovalStatus.REJECTED, processed_at=now
            ):
                raise ValidationError("This request has already been processed")
            logger.info("Role approval %s rejected", approval.approval_id)
            return ApprovalOutcome(
                status=RoleApprovalStatus.REJECTED,
                title="Request Rejected",
                message=f"The request to make {approval.target_user_name} General Overseer has been rejected.",
            )

        overseer = self._users.get_current_overseer()
        if not overseer:
            raise ValidationError("No General Overseer found in the system")
        try:
            transferred = self._approvals.approve_and_transfer(
                approval_id=approval.approval_id,
                from_user_id=overseer.user_id,
                to_user_id=approval.target_user_id,
                processed_at=now,
            )
        except LookupError:
            raise NotFoundError("Target user not found")
        if not transferred:
            raise ValidationError("This request has already been processed")

        self._audit.record(
            entity_type="user",
            entity_id=approval.target_user_id,
            action=AuditAction.ROLE_TRANSFER,
            performed_by=overseer.user_id,
            previous_values={"general_overseer": overseer.user_id},
            new_values={"general_overseer": approval.target_user_id},
            notes=f"role approval {approval.approval_id}",
        )
        logger.info("General Overseer role transferred to user %s", approval.target_user_id)
        return ApprovalOutcome(
            status=RoleApprovalStatus.APPROVED,
            title="Role Transfer Approved",
            message=(
                f"{approval.target_user_name} is now the General Overseer. "
                "Your account has been changed to User Admin."
            ),
        )
