"""Role capability matrix.

Every permission check goes through this table; controllers and services
never compare role strings directly.
"""
from __future__ import annotations

from enum import Enum

from ..core.enums import Role, WorkItemKind


class Capability(str, Enum):
    SUBMIT_REPORTS = "submit_reports"
    SUBMIT_TASKS = "submit_tasks"
    APPROVE_REPORTS = "approve_reports"
    APPROVE_TASKS = "approve_tasks"
    OVERRIDE_REPORTS = "override_reports"
    OVERRIDE_TASKS = "override_tasks"
    EDIT_RATES = "edit_rates"

    VIEW_ALL_TEAMS = "view_all_teams"
    MANAGE_TEAMS = "manage_teams"

    VIEW_ALL_USERS = "view_all_users"
    MANAGE_USERS = "manage_users"
    ASSIGN_ROLES = "assign_roles"

    VIEW_PAYROLL = "view_payroll"
    MANAGE_PAYROLL = "manage_payroll"
    MANAGE_SALARY_PERIODS = "manage_salary_periods"

    VIEW_AUDIT_LOGS = "view_audit_logs"
    MANAGE_SETTINGS = "manage_settings"
    RESOLVE_REQUESTS = "resolve_requests"
    CREATE_ANNOUNCEMENTS = "create_announcements"

    # Override authority, always paired with a mandatory reason.
    OVERRIDE_ADMIN_DECISIONS = "override_admin_decisions"
    REOPEN_CLOSED_PERIODS = "reopen_closed_periods"
    MODIFY_APPROVED_RATES = "modify_approved_rates"


C = Capability

_SUBMITTER = frozenset({C.SUBMIT_REPORTS, C.SUBMIT_TASKS})

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.EMPLOYEE: _SUBMITTER,
    Role.TRADER: _SUBMITTER,
    Role.TEAM_LEAD: _SUBMITTER | {C.APPROVE_REPORTS, C.APPROVE_TASKS, C.MANAGE_TEAMS},
    Role.DEPARTMENT_HEAD: frozenset(
        {C.APPROVE_REPORTS, C.APPROVE_TASKS, C.VIEW_ALL_TEAMS, C.MANAGE_TEAMS, C.VIEW_AUDIT_LOGS}
    ),
    Role.REPORT_ADMIN: frozenset(
        {
            C.APPROVE_REPORTS,
            C.APPROVE_TASKS,
            C.OVERRIDE_REPORTS,
            C.OVERRIDE_TASKS,
            C.EDIT_RATES,
            C.VIEW_ALL_TEAMS,
            C.VIEW_AUDIT_LOGS,
            C.RESOLVE_REQUESTS,
            C.CREATE_ANNOUNCEMENTS,
        }
    ),
    Role.FINANCE_HR_ADMIN: frozenset(
        {
            C.EDIT_RATES,
            C.VIEW_ALL_TEAMS,
            C.VIEW_ALL_USERS,
            C.VIEW_PAYROLL,
            C.MANAGE_PAYROLL,
            C.MANAGE_SALARY_PERIODS,
            C.VIEW_AUDIT_LOGS,
            C.CREATE_ANNOUNCEMENTS,
        }
    ),
    Role.INVESTMENT_ADMIN: frozenset({C.CREATE_ANNOUNCEMENTS}),
    Role.USER_ADMIN: frozenset(
        {
            C.VIEW_ALL_TEAMS,
            C.MANAGE_TEAMS,
            C.VIEW_ALL_USERS,
            C.MANAGE_USERS,
            C.ASSIGN_ROLES,
            C.VIEW_AUDIT_LOGS,
            C.RESOLVE_REQUESTS,
            C.CREATE_ANNOUNCEMENTS,
        }
    ),
    # The overseer oversees; it does not submit its own work.
    Role.GENERAL_OVERSEER: frozenset(set(Capability) - _SUBMITTER),
}


def capabilities_for(role: Role) -> frozenset[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def submit_capability(kind: WorkItemKind) -> Capability:
    return C.SUBMIT_TASKS if kind == WorkItemKind.TASK else C.SUBMIT_REPORTS


def approve_capability(kind: WorkItemKind) -> Capability:
    return C.APPROVE_TASKS if kind == WorkItemKind.TASK else C.APPROVE_REPORTS


def override_capability(kind: WorkItemKind) -> Capability:
    return C.OVERRIDE_TASKS if kind == WorkItemKind.TASK else C.OVERRIDE_REPORTS
