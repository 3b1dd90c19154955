from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..authz.capabilities import Capability, approve_capability, override_capability, submit_capability
from ..authz.confirmation import ConfirmationPolicy, require_reason_for_tier
from ..authz.context import AuthorizationContext
from ..common.datetime_utils import utc_now
from ..common.validators import optional_text, parse_decimal, require_max_length, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT, MAX_HOURS_PER_DAY, MAX_RATE
from ..core.enums import AuthorityTier, Decision, FinalStatus, Role, WorkItemKind
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..notifications.model import EventType
from ..notifications.outbox import OutboxPublisher
from ..notifications.payloads import TaskNotification
from ..users.repository import UserRepository
from .model import NewWorkItem, WorkItem
from .repository import WorkItemRepository
from .rules import can_team_lead_review, compute_earnings, final_status_for, is_overridable

logger = logging.getLogger(__name__)

ENTITY_TYPES = {WorkItemKind.TASK: "task", WorkItemKind.REPORT: "work_report"}


def _parse_decision(value) -> Decision:
    try:
        return value if isinstance(value, Decision) else Decision(str(value))
    except ValueError:
        raise ValidationError("decision must be 'approved' or 'rejected'")


class WorkItemService:
    """Use cases: submit tasks/reports and move them through the review tiers.

    Submission -> team-lead review -> admin/overseer override. Every write is
    audited and every decision queues an email to the submitter through the
    outbox; a failure to queue never undoes the decision.
    """

    def __init__(
        self,
        items: WorkItemRepository,
        users: UserRepository,
        audit: AuditService,
        publisher: OutboxPublisher,
    ):
        self._items = items
        self._users = users
        self._audit = audit
        self._publisher = publisher

    # -------- Submission --------
    def submit(
        self,
        ctx: AuthorizationContext,
        *,
        kind: WorkItemKind,
        title: str,
        work_date: date,
        hours_worked,
        base_rate,
        platform: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        ctx.require(submit_capability(kind))

        title = require_max_length(require_non_empty(title, "Title"), "Title", 255)
        hours = parse_decimal(hours_worked, "Hours worked", maximum=MAX_HOURS_PER_DAY)
        rate = parse_decimal(base_rate, "Rate", maximum=MAX_RATE)

        item_id = self._items.create(
            NewWorkItem(
                kind=kind,
                user_id=ctx.user_id,
                title=title,
                platform=optional_text(platform),
                work_date=work_date,
                description=optional_text(description),
                hours_worked=hours,
                base_rate=rate,
                earnings=compute_earnings(hours, rate),
            )
        )
        self._audit.record(
            entity_type=ENTITY_TYPES[kind],
            entity_id=item_id,
            action=AuditAction.SUBMIT,
            performed_by=ctx.user_id,
            new_values={"title": title, "hours_worked": hours, "base_rate": rate, "final_status": FinalStatus.PENDING},
        )
        return item_id

    # -------- Queries --------
    def get(self, ctx: AuthorizationContext, *, item_id: int) -> WorkItem:
        item = self._require_item(item_id)
        if item.user_id != ctx.user_id and not (
            ctx.has_capability(approve_capability(item.kind))
            or ctx.has_capability(override_capability(item.kind))
            or ctx.has_capability(Capability.VIEW_ALL_TEAMS)
        ):
            raise AuthorizationError("You do not have permission to view this item")
        return item

    def list_mine(self, ctx: AuthorizationContext, *, kind: Optional[WorkItemKind] = None) -> Sequence[WorkItem]:
        return self._items.list_items(kind=kind, user_id=ctx.user_id, limit=DEFAULT_LIST_LIMIT)

    def list_review_queue(self, ctx: AuthorizationContext, *, kind: WorkItemKind) -> Sequence[WorkItem]:
        """Items awaiting this reviewer: pending ones for team leads, overridable ones for admins."""
        if ctx.has_capability(override_capability(kind)):
            items = self._items.list_items(
                kind=kind,
                final_status=FinalStatus.PENDING,
                team_lead_status=Decision.REJECTED,
                limit=DEFAULT_LIST_LIMIT,
            )
            return [i for i in items if is_overridable(i)]

        ctx.require(approve_capability(kind))
        team_lead_id = ctx.user_id if ctx.role == Role.TEAM_LEAD else None
        items = self._items.list_items(
            kind=kind,
            team_lead_id=team_lead_id,
            final_status=FinalStatus.PENDING,
            limit=DEFAULT_LIST_LIMIT,
        )
        return [i for i in items if can_team_lead_review(i) and i.team_lead_status is None]

    def confirmation_policy(self, ctx: AuthorizationContext) -> ConfirmationPolicy:
        return ConfirmationPolicy.for_tier(ctx.tier)

    # -------- Team-lead review --------
    def review_as_team_lead(
        self,
        ctx: AuthorizationContext,
        *,
        item_id: int,
        decision,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WorkItem:
        decision = _parse_decision(decision)
        item = self._require_item(item_id)
        ctx.require(approve_capability(item.kind))

        if ctx.role == Role.TEAM_LEAD:
            owner = self._users.get_by_id(item.user_id)
            if not owner or owner.team_lead_id != ctx.user_id:
                raise AuthorizationError("You can only review submissions from your own team")
        if item.user_id == ctx.user_id:
            raise AuthorizationError("You cannot review your own submission")

        if not can_team_lead_review(item):
            raise ConflictError("This item has already been finalized and can only be changed by an override")

        reason = optional_text(reason)
        if decision == Decision.REJECTED and not reason:
            raise ValidationError("A rejection reason is required")

        final_status = FinalStatus.APPROVED if decision == Decision.APPROVED else FinalStatus.PENDING
        now = now or utc_now()
        if not self._items.apply_team_lead_review(
            item_id=item.item_id,
            decision=decision,
            reviewer_id=ctx.user_id,
            reason=reason,
            final_status=final_status,
            reviewed_at=now,
        ):
            raise ConflictError("This item was changed by another reviewer; reload and try again")

        self._audit.record(
            entity_type=ENTITY_TYPES[item.kind],
            entity_id=item.item_id,
            action=AuditAction.TEAM_LEAD_REVIEW,
            performed_by=ctx.user_id,
            previous_values={"team_lead_status": item.team_lead_status, "final_status": item.final_status},
            new_values={"team_lead_status": decision, "final_status": final_status},
            notes=reason,
        )
        self._notify(item, decision=decision, reason=reason, reviewer_name=ctx.full_name, is_override=False, now=now)
        logger.info("Team-lead review %s on %s %s by %s", decision.value, item.kind.value, item.item_id, ctx.user_id)
        return self._require_item(item.item_id)

    # -------- Admin / overseer override --------
    def override(
        self,
        ctx: AuthorizationContext,
        *,
        item_id: int,
        decision,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WorkItem:
        decision = _parse_decision(decision)
        item = self._require_item(item_id)
        ctx.require(override_capability(item.kind))

        # Reason rule is enforced here too, not only in the confirmation dialog.
        reason = require_reason_for_tier(ctx.tier, reason, max_tier=AuthorityTier.ADMINISTRATOR)

        can_override_final = ctx.has_capability(Capability.OVERRIDE_ADMIN_DECISIONS)
        if item.final_status != FinalStatus.PENDING and not can_override_final:
            raise ConflictError("Only the General Overseer can override a finalized decision")

        now = now or utc_now()
        if not self._items.apply_override(
            item_id=item.item_id,
            decision=decision,
            reviewer_id=ctx.user_id,
            reason=reason,
            reviewed_at=now,
            require_pending=not can_override_final,
        ):
            raise ConflictError("This item was changed by another reviewer; reload and try again")

        new_final = final_status_for(decision)
        self._audit.record(
            entity_type=ENTITY_TYPES[item.kind],
            entity_id=item.item_id,
            action=AuditAction.ADMIN_OVERRIDE,
            performed_by=ctx.user_id,
            previous_values={
                "admin_status": item.admin_status,
                "final_status": item.final_status,
                "team_lead_status": item.team_lead_status,
            },
            new_values={"admin_status": decision, "final_status": new_final},
            notes=reason,
        )
        self._notify(item, decision=decision, reason=reason, reviewer_name=ctx.full_name, is_override=True, now=now)
        logger.info("Override %s on %s %s by %s (%s)", decision.value, item.kind.value, item.item_id, ctx.user_id, ctx.role.value)
        return self._require_item(item.item_id)

    # -------- Rates --------
    def adjust_rate(
        self,
        ctx: AuthorizationContext,
        *,
        item_id: int,
        new_rate,
        reason: Optional[str] = None,
    ) -> WorkItem:
        ctx.require(Capability.EDIT_RATES)
        rate = parse_decimal(new_rate, "Rate", maximum=MAX_RATE)
        reason = require_reason_for_tier(ctx.tier, reason, max_tier=AuthorityTier.SUPREME)

        item = self._require_item(item_id)
        may_touch_final = ctx.has_capability(Capability.MODIFY_APPROVED_RATES)
        if item.final_status != FinalStatus.PENDING and not may_touch_final:
            raise ConflictError("Rates can only be changed on pending items")

        earnings = compute_earnings(item.hours_worked, rate)
        if not self._items.update_rate(
            item_id=item.item_id,
            current_rate=rate,
            earnings=earnings,
            require_pending=not may_touch_final,
        ):
            raise ConflictError("This item was changed by another reviewer; reload and try again")

        self._audit.record(
            entity_type=ENTITY_TYPES[item.kind],
            entity_id=item.item_id,
            action=AuditAction.RATE_OVERRIDE,
            performed_by=ctx.user_id,
            previous_values={"current_rate": item.current_rate, "earnings": item.earnings},
            new_values={"current_rate": rate, "earnings": earnings},
            notes=reason,
        )
        return self._require_item(item.item_id)

    # -------- helpers --------
    def _require_item(self, item_id: int) -> WorkItem:
        item = self._items.get(int(item_id))
        if not item:
            raise NotFoundError("Item not found")
        return item

    def _notify(
        self,
        item: WorkItem,
        *,
        decision: Decision,
        reason: Optional[str],
        reviewer_name: str,
        is_override: bool,
        now: datetime,
    ) -> None:
        payload = TaskNotification(
            kind=item.kind,
            action=decision.value,
            user_id=item.user_id,
            item_title=item.title,
            platform=item.platform,
            work_date=item.work_date.isoformat(),
            reason=reason,
            reviewer_name=reviewer_name or None,
            is_override=is_override,
        ).to_payload()
        self._publisher.try_publish(EventType.TASK_NOTIFICATION, payload, now=now)
