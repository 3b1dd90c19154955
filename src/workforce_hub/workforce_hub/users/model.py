from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role
from .mpcn import format_mpcn_id


@dataclass(frozen=True)
class User:
    """Domain entity: an account with exactly one role."""

    user_id: int
    public_id: str
    full_name: str
    email: str
    password_hash: str
    role: Role
    department: Optional[str] = None
    team_lead_id: Optional[int] = None
    phone_number: Optional[str] = None
    phone_verified_at: Optional[datetime] = None
    is_active: bool = True

    @property
    def mpcn_id(self) -> str:
        return format_mpcn_id(self.public_id)
