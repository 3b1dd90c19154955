from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import Decision, FinalStatus, WorkItemKind
from .model import NewWorkItem, WorkItem


class WorkItemRepository(Protocol):
    def create(self, item: NewWorkItem) -> int:
        raise NotImplementedError

    def get(self, item_id: int) -> Optional[WorkItem]:
        raise NotImplementedError

    def list_items(
        self,
        *,
        kind: Optional[WorkItemKind] = None,
        user_id: Optional[int] = None,
        team_lead_id: Optional[int] = None,
        final_status: Optional[FinalStatus] = None,
        team_lead_status: Optional[Decision] = None,
        limit: int = 200,
    ) -> Sequence[WorkItem]:
        raise NotImplementedError

    def list_approved_between(self, *, start: date, end: date) -> Sequence[WorkItem]:
        raise NotImplementedError

    def apply_team_lead_review(
        self,
        *,
        item_id: int,
        decision: Decision,
        reviewer_id: int,
        reason: Optional[str],
        final_status: FinalStatus,
        reviewed_at: datetime,
    ) -> bool:
        """Only applies while the item is pending with no admin decision."""

        raise NotImplementedError

    def apply_override(
        self,
        *,
        item_id: int,
        decision: Decision,
        reviewer_id: int,
        reason: Optional[str],
        reviewed_at: datetime,
        require_pending: bool,
    ) -> bool:
        raise NotImplementedError

    def update_rate(
        self,
        *,
        item_id: int,
        current_rate: Decimal,
        earnings: Decimal,
        require_pending: bool,
    ) -> bool:
        raise NotImplementedError
