from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class AuditAction(str, Enum):
    SUBMIT = "submit"
    TEAM_LEAD_REVIEW = "team_lead_review"
    ADMIN_OVERRIDE = "admin_override"
    RATE_OVERRIDE = "rate_override"
    SALARY_PERIOD_CREATED = "salary_period_created"
    SALARY_PERIOD_CLOSED = "salary_period_closed"
    SALARY_PERIOD_REOPENED = "salary_period_reopened"
    ROLE_TRANSFER = "role_transfer"
    USER_DELETED = "user_deleted"
    RESOLUTION_UPDATED = "resolution_updated"


@dataclass(frozen=True)
class AuditEntry:
    log_id: int
    entity_type: str
    entity_id: str
    action: AuditAction
    performed_by: Optional[int]
    previous_values: Optional[dict]
    new_values: Optional[dict]
    notes: Optional[str]
    created_at: datetime
