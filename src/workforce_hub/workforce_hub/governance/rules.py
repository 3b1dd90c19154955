from __future__ import annotations

from datetime import datetime, timedelta

from ..core.constants import SLA_HOURS_BY_PRIORITY, SLA_WARNING_HOURS
from ..core.enums import Priority, ResolutionStatus

S = ResolutionStatus

ALLOWED_TRANSITIONS: dict[ResolutionStatus, frozenset[ResolutionStatus]] = {
    S.OPEN: frozenset({S.UNDER_REVIEW, S.MEDIATION, S.ESCALATED, S.RESOLVED}),
    S.UNDER_REVIEW: frozenset({S.MEDIATION, S.ESCALATED, S.RESOLVED}),
    S.MEDIATION: frozenset({S.UNDER_REVIEW, S.ESCALATED, S.RESOLVED}),
    S.ESCALATED: frozenset({S.UNDER_REVIEW, S.MEDIATION, S.RESOLVED}),
    S.RESOLVED: frozenset(),
}


def sla_due_at(priority: Priority, created_at: datetime) -> datetime:
    return created_at + timedelta(hours=SLA_HOURS_BY_PRIORITY[priority.value])


def warning_cutoff(now: datetime) -> datetime:
    return now + timedelta(hours=SLA_WARNING_HOURS)


def can_transition(current: ResolutionStatus, target: ResolutionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
