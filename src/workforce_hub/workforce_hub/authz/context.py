from __future__ import annotations

from dataclasses import dataclass, field

from ..core.enums import AuthorityTier, Role
from ..core.exceptions import AuthorizationError
from .capabilities import Capability, capabilities_for
from .hierarchy import get_authority_tier


@dataclass(frozen=True)
class AuthorizationContext:
    """Who is acting and what they may do.

    Built once per request from the session and passed into services, so
    capability checks are a set lookup rather than role comparisons.
    """

    user_id: int
    role: Role
    full_name: str = ""
    capabilities: frozenset[Capability] = field(default_factory=frozenset)

    @classmethod
    def for_role(cls, *, user_id: int, role: Role, full_name: str = "") -> "AuthorizationContext":
        return cls(user_id=int(user_id), role=role, full_name=full_name, capabilities=capabilities_for(role))

    @property
    def tier(self) -> AuthorityTier:
        return get_authority_tier(self.role)

    def has_capability(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        if capability not in self.capabilities:
            raise AuthorizationError("You do not have permission to perform this action")
