"""Role hierarchy and authority tiers.

Single source of truth for how much authority a role carries. The
general overseer sits above the administrators and is not one of them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AuthorityTier, Role


@dataclass(frozen=True)
class RoleHierarchyEntry:
    role: Role
    tier: AuthorityTier
    display_name: str


ROLE_HIERARCHY: dict[Role, RoleHierarchyEntry] = {
    Role.EMPLOYEE: RoleHierarchyEntry(Role.EMPLOYEE, AuthorityTier.OPERATIONAL, "Team Member"),
    Role.TRADER: RoleHierarchyEntry(Role.TRADER, AuthorityTier.OPERATIONAL, "Trader"),
    Role.TEAM_LEAD: RoleHierarchyEntry(Role.TEAM_LEAD, AuthorityTier.MANAGEMENT, "Team Lead"),
    Role.DEPARTMENT_HEAD: RoleHierarchyEntry(Role.DEPARTMENT_HEAD, AuthorityTier.MANAGEMENT, "Department Head"),
    Role.REPORT_ADMIN: RoleHierarchyEntry(Role.REPORT_ADMIN, AuthorityTier.ADMINISTRATOR, "Report Administrator"),
    Role.FINANCE_HR_ADMIN: RoleHierarchyEntry(Role.FINANCE_HR_ADMIN, AuthorityTier.ADMINISTRATOR, "Finance & HR Administrator"),
    Role.INVESTMENT_ADMIN: RoleHierarchyEntry(Role.INVESTMENT_ADMIN, AuthorityTier.ADMINISTRATOR, "Investment Administrator"),
    Role.USER_ADMIN: RoleHierarchyEntry(Role.USER_ADMIN, AuthorityTier.ADMINISTRATOR, "User Administrator"),
    Role.GENERAL_OVERSEER: RoleHierarchyEntry(Role.GENERAL_OVERSEER, AuthorityTier.SUPREME, "General Overseer"),
}

# Roles that receive governance alerts (SLA breaches and warnings).
ALERT_RECIPIENT_ROLES = (Role.REPORT_ADMIN, Role.USER_ADMIN, Role.GENERAL_OVERSEER)

# Roles allowed to start an overseer role transfer.
ROLE_TRANSFER_REQUESTER_ROLES = (Role.USER_ADMIN, Role.GENERAL_OVERSEER)


def get_authority_tier(role: Optional[Role]) -> AuthorityTier:
    if role is None:
        return AuthorityTier.OPERATIONAL
    return ROLE_HIERARCHY[role].tier


def can_modify_role(actor: Optional[Role], target: Role) -> bool:
    """The overseer may modify anyone; others only strictly lower tiers."""
    if actor is None:
        return False
    actor_tier = get_authority_tier(actor)
    if actor_tier == AuthorityTier.SUPREME:
        return True
    return actor_tier < get_authority_tier(target)


def get_role_display_name(role: Optional[Role]) -> str:
    if role is None:
        return "Unknown"
    return ROLE_HIERARCHY[role].display_name
