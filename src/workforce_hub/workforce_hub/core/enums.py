from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Application roles used for authorization."""

    EMPLOYEE = "employee"
    TRADER = "trader"
    TEAM_LEAD = "team_lead"
    DEPARTMENT_HEAD = "department_head"
    REPORT_ADMIN = "report_admin"
    FINANCE_HR_ADMIN = "finance_hr_admin"
    INVESTMENT_ADMIN = "investment_admin"
    USER_ADMIN = "user_admin"
    GENERAL_OVERSEER = "general_overseer"


class AuthorityTier(int, Enum):
    """Lower value means more authority."""

    SUPREME = 0
    ADMINISTRATOR = 1
    MANAGEMENT = 2
    OPERATIONAL = 3


class WorkItemKind(str, Enum):
    TASK = "task"
    REPORT = "report"


class FinalStatus(str, Enum):
    """Authoritative outcome of a task/report after all review tiers."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    """A reviewer decision (team lead or override)."""

    APPROVED = "approved"
    REJECTED = "rejected"


class SalaryPeriodStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class RoleApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ResolutionStatus(str, Enum):
    OPEN = "open"
    UNDER_REVIEW = "under_review"
    MEDIATION = "mediation"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class OutboxStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class ChannelType(str, Enum):
    TEAM = "team"
    DEPARTMENT = "department"
    ANNOUNCEMENT = "announcement"
    DIRECT = "direct"
