from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Priority, ResolutionStatus


@dataclass(frozen=True)
class ResolutionRequest:
    request_id: int
    raised_by: int
    category: str
    title: str
    description: str
    priority: Priority
    status: ResolutionStatus
    sla_due_at: datetime
    created_at: datetime
    warning_alerted_at: Optional[datetime] = None
    breach_alerted_at: Optional[datetime] = None
    escalation_reason: Optional[str] = None
    resolution: Optional[str] = None
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status != ResolutionStatus.RESOLVED
