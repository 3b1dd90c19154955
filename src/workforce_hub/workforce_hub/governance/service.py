from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..authz.capabilities import Capability
from ..authz.context import AuthorizationContext
from ..common.datetime_utils import utc_now
from ..common.validators import optional_text, require_max_length, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import Priority, ResolutionStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import ResolutionRequest
from .repository import ResolutionRequestRepository
from .rules import can_transition, sla_due_at

logger = logging.getLogger(__name__)


class ResolutionService:
    """Use case: raise and work resolution requests (complaints, disputes, support)."""

    def __init__(self, requests: ResolutionRequestRepository, audit: AuditService):
        self._requests = requests
        self._audit = audit

    def create(
        self,
        ctx: AuthorizationContext,
        *,
        category: str,
        title: str,
        description: str,
        priority=Priority.NORMAL,
        now: Optional[datetime] = None,
    ) -> int:
        category = require_non_empty(category, "Category")
        title = require_max_length(require_non_empty(title, "Title"), "Title", 255)
        description = require_non_empty(description, "Description")
        try:
            priority = Priority(priority or Priority.NORMAL)
        except ValueError:
            raise ValidationError("priority must be one of low, normal, high, urgent")

        now = now or utc_now()
        return self._requests.create(
            raised_by=ctx.user_id,
            category=category,
            title=title,
            description=description,
            priority=priority,
            sla_due_at=sla_due_at(priority, now),
            created_at=now,
        )

    def get(self, ctx: AuthorizationContext, *, request_id: int) -> ResolutionRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Request not found")
        if req.raised_by != ctx.user_id and not ctx.has_capability(Capability.RESOLVE_REQUESTS):
            raise AuthorizationError("You do not have permission to view this request")
        return req

    def list_requests(
        self,
        ctx: AuthorizationContext,
        *,
        status: Optional[ResolutionStatus] = None,
    ) -> Sequence[ResolutionRequest]:
        # Non-resolvers only ever see their own requests.
        raised_by = None if ctx.has_capability(Capability.RESOLVE_REQUESTS) else ctx.user_id
        return self._requests.list_requests(status=status, raised_by=raised_by, limit=DEFAULT_LIST_LIMIT)

    def transition(
        self,
        ctx: AuthorizationContext,
        *,
        request_id: int,
        status,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ResolutionRequest:
        ctx.require(Capability.RESOLVE_REQUESTS)
        try:
            target = ResolutionStatus(status)
        except ValueError:
            raise ValidationError("Invalid status")

        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Request not found")
        if not can_transition(req.status, target):
            raise ConflictError(f"Cannot move a request from {req.status.value} to {target.value}")

        note = optional_text(note)
        if target == ResolutionStatus.ESCALATED and not note:
            raise ValidationError("An escalation reason is required")
        if target == ResolutionStatus.RESOLVED and not note:
            raise ValidationError("A resolution summary is required")

        now = now or utc_now()
        resolved = target == ResolutionStatus.RESOLVED
        if not self._requests.update_status(
            request_id=req.request_id,
            expected_status=req.status,
            status=target,
            escalation_reason=note if target == ResolutionStatus.ESCALATED else None,
            resolution=note if resolved else None,
            resolved_by=ctx.user_id if resolved else None,
            resolved_at=now if resolved else None,
        ):
            raise ConflictError("This request was updated by someone else; reload and try again")

        self._audit.record(
            entity_type="resolution_request",
            entity_id=req.request_id,
            action=AuditAction.RESOLUTION_UPDATED,
            performed_by=ctx.user_id,
            previous_values={"status": req.status},
            new_values={"status": target},
            notes=note,
        )
        return self._requests.get(req.request_id)
