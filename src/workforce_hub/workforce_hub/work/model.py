from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import Decision, FinalStatus, WorkItemKind


@dataclass(frozen=True)
class WorkItem:
    """A submitted task or work report and its review state.

    ``final_status`` is the authoritative outcome. ``team_lead_status`` and
    ``admin_status`` record the individual tier decisions that produced it.
    """

    item_id: int
    kind: WorkItemKind
    user_id: int
    title: str
    platform: Optional[str]
    work_date: date
    description: Optional[str]
    hours_worked: Decimal
    base_rate: Decimal
    current_rate: Decimal
    earnings: Decimal
    final_status: FinalStatus = FinalStatus.PENDING
    team_lead_status: Optional[Decision] = None
    team_lead_rejection_reason: Optional[str] = None
    team_lead_reviewed_by: Optional[int] = None
    team_lead_reviewed_at: Optional[datetime] = None
    admin_status: Optional[Decision] = None
    admin_reason: Optional[str] = None
    admin_reviewed_by: Optional[int] = None
    admin_reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewWorkItem:
    kind: WorkItemKind
    user_id: int
    title: str
    platform: Optional[str]
    work_date: date
    description: Optional[str]
    hours_worked: Decimal
    base_rate: Decimal
    earnings: Decimal
