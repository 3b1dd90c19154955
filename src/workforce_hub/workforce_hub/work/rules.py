"""Pure review rules for work items (no I/O)."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ..core.enums import Decision, FinalStatus
from .model import WorkItem

CENT = Decimal("0.01")


def compute_earnings(hours_worked: Decimal, rate: Decimal) -> Decimal:
    return (Decimal(hours_worked) * Decimal(rate)).quantize(CENT, rounding=ROUND_HALF_UP)


def final_status_for(decision: Decision) -> FinalStatus:
    return FinalStatus.APPROVED if decision == Decision.APPROVED else FinalStatus.REJECTED


def can_team_lead_review(item: WorkItem) -> bool:
    return item.final_status == FinalStatus.PENDING and item.admin_status is None


def is_overridable(item: WorkItem) -> bool:
    """Rejected by the team lead and still awaiting a final decision."""
    return item.team_lead_status == Decision.REJECTED and item.final_status == FinalStatus.PENDING


def has_consistent_final_status(item: WorkItem) -> bool:
    if item.final_status != FinalStatus.APPROVED:
        return True
    return item.team_lead_status == Decision.APPROVED or item.admin_status == Decision.APPROVED
