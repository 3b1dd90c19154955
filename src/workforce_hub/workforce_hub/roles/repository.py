from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import RoleApprovalStatus
from .model import RoleApproval


class RoleApprovalRepository(Protocol):
    def create(
        self,
        *,
        token: str,
        requested_by: int,
        target_user_id: int,
        target_user_name: str,
        current_overseer_id: Optional[int],
        expires_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[RoleApproval]:
        raise NotImplementedError

    def has_pending_for_target(self, target_user_id: int) -> bool:
        raise NotImplementedError

    def resolve(self, *, approval_id: int, status: RoleApprovalStatus, processed_at: datetime) -> bool:
        """Move a pending approval to ``status``; False if it was no longer pending."""

        raise NotImplementedError

    def approve_and_transfer(
        self,
        *,
        approval_id: int,
        from_user_id: int,
        to_user_id: int,
        processed_at: datetime,
    ) -> bool:
        """In one transaction: mark approved, demote the old overseer, promote the target."""

        raise NotImplementedError
