"""Wire payloads shared by the HTTP functions and the outbox.

The outbox stores exactly what the ``/functions/...`` endpoints accept, so a
queued event and a direct call go through the same parsing.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import parse_iso_datetime
from ..core.enums import Priority, WorkItemKind
from ..core.exceptions import ValidationError

TASK_ACTIONS = ("approved", "rejected", "overridden")


def _int_field(payload: dict, key: str, label: str) -> int:
    value = payload.get(key)
    if value in (None, ""):
        raise ValidationError(f"{label} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be an integer")


@dataclass(frozen=True)
class TaskNotification:
    kind: WorkItemKind
    action: str
    user_id: int
    item_title: Optional[str]
    platform: Optional[str]
    work_date: str
    reason: Optional[str] = None
    reviewer_name: Optional[str] = None
    is_override: bool = False

    @classmethod
    def from_payload(cls, payload: dict) -> "TaskNotification":
        try:
            kind = WorkItemKind(payload.get("type"))
        except ValueError:
            raise ValidationError("type must be 'task' or 'report'")
        action = payload.get("action")
        if action not in TASK_ACTIONS:
            raise ValidationError("action must be one of approved, rejected, overridden")
        return cls(
            kind=kind,
            action=action,
            user_id=_int_field(payload, "userId", "userId"),
            item_title=payload.get("itemTitle"),
            platform=payload.get("platform"),
            work_date=str(payload.get("workDate") or ""),
            reason=payload.get("reason") or None,
            reviewer_name=payload.get("reviewerName") or None,
            is_override=bool(payload.get("isOverride", False)),
        )

    def to_payload(self) -> dict:
        return {
            "type": self.kind.value,
            "action": self.action,
            "userId": self.user_id,
            "itemTitle": self.item_title,
            "platform": self.platform,
            "workDate": self.work_date,
            "reason": self.reason,
            "reviewerName": self.reviewer_name,
            "isOverride": self.is_override,
        }


@dataclass(frozen=True)
class SlaAlert:
    request_id: int
    title: str
    priority: Priority
    sla_due_at: datetime
    category: str
    is_breach: bool
    raised_by_name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "SlaAlert":
        try:
            priority = Priority(payload.get("priority"))
        except ValueError:
            raise ValidationError("priority must be one of low, normal, high, urgent")
        title = (payload.get("title") or "").strip()
        if not title:
            raise ValidationError("title is required")
        return cls(
            request_id=_int_field(payload, "requestId", "requestId"),
            title=title,
            priority=priority,
            sla_due_at=parse_iso_datetime(payload.get("slaDueAt"), "slaDueAt"),
            category=str(payload.get("category") or ""),
            is_breach=bool(payload.get("isBreach", False)),
            raised_by_name=payload.get("raisedByName") or None,
        )

    def to_payload(self) -> dict:
        return {
            "requestId": self.request_id,
            "title": self.title,
            "priority": self.priority.value,
            "slaDueAt": self.sla_due_at.isoformat(),
            "category": self.category,
            "raisedByName": self.raised_by_name,
            "isBreach": self.is_breach,
        }
