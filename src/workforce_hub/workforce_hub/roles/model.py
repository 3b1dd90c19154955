from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RoleApprovalStatus


@dataclass(frozen=True)
class RoleApproval:
    """A request to hand the General Overseer role to another user.

    The current overseer approves or rejects it through a one-time token link.
    """

    approval_id: int
    token: str
    requested_by: int
    target_user_id: int
    target_user_name: str
    status: RoleApprovalStatus
    expires_at: datetime
    current_overseer_id: Optional[int] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
