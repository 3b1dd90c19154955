from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..authz.capabilities import Capability
from ..authz.context import AuthorizationContext
from ..core.constants import DEFAULT_HISTORY_LIMIT
from .model import AuditAction, AuditEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Use case: record and read the activity log."""

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        *,
        entity_type: str,
        entity_id,
        action: AuditAction,
        performed_by: Optional[int],
        previous_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> int:
        log_id = self._audit.append(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            performed_by=performed_by,
            previous_values=previous_values,
            new_values=new_values,
            notes=notes,
        )
        logger.info("audit %s %s/%s by %s", action.value, entity_type, entity_id, performed_by)
        return log_id

    def timeline(self, ctx: AuthorizationContext, *, entity_type: str, entity_id) -> Sequence[AuditEntry]:
        ctx.require(Capability.VIEW_AUDIT_LOGS)
        return self._audit.list_for_entity(entity_type=entity_type, entity_id=str(entity_id))

    def recent(
        self,
        ctx: AuthorizationContext,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
        entity_type: Optional[str] = None,
    ) -> Sequence[AuditEntry]:
        ctx.require(Capability.VIEW_AUDIT_LOGS)
        limit = max(1, min(int(limit), 500))
        return self._audit.list_recent(limit=limit, entity_type=entity_type)
