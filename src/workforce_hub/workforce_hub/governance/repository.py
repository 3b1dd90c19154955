from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Priority, ResolutionStatus
from .model import ResolutionRequest


class ResolutionRequestRepository(Protocol):
    def create(
        self,
        *,
        raised_by: int,
        category: str,
        title: str,
        description: str,
        priority: Priority,
        sla_due_at: datetime,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[ResolutionRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[ResolutionStatus] = None,
        raised_by: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[ResolutionRequest]:
        raise NotImplementedError

    def update_status(
        self,
        *,
        request_id: int,
        expected_status: ResolutionStatus,
        status: ResolutionStatus,
        escalation_reason: Optional[str] = None,
        resolution: Optional[str] = None,
        resolved_by: Optional[int] = None,
        resolved_at: Optional[datetime] = None,
    ) -> bool:
        raise NotImplementedError

    def list_due_before(self, cutoff: datetime) -> Sequence[ResolutionRequest]:
        """Unresolved requests whose SLA falls at or before ``cutoff``."""

        raise NotImplementedError

    def claim_breach_alert(self, *, request_id: int, now: datetime) -> bool:
        """Set ``breach_alerted_at`` if still unset; True only for the caller that set it."""

        raise NotImplementedError

    def claim_warning_alert(self, *, request_id: int, now: datetime) -> bool:
        raise NotImplementedError

    def release_alert_claim(self, *, request_id: int, breach: bool) -> None:
        raise NotImplementedError
