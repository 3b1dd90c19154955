"""Confirmation friction scaled by authority tier.

Tier 0 confirms in three steps (impact summary, reason, acknowledgment),
tier 1 in two (impact summary, reason), everyone else in one. The reason
rules are also checked by the services before any write.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from ..core.enums import AuthorityTier
from ..core.exceptions import ValidationError


class ConfirmationStep(str, Enum):
    IMPACT_SUMMARY = "impact_summary"
    REASON = "reason"
    ACKNOWLEDGE = "acknowledge"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class ConfirmationPolicy:
    tier: AuthorityTier
    steps: tuple[ConfirmationStep, ...]

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def requires_reason(self) -> bool:
        return ConfirmationStep.REASON in self.steps

    @property
    def requires_acknowledgment(self) -> bool:
        return ConfirmationStep.ACKNOWLEDGE in self.steps

    @classmethod
    def for_tier(cls, tier: AuthorityTier) -> "ConfirmationPolicy":
        if tier == AuthorityTier.SUPREME:
            steps = (ConfirmationStep.IMPACT_SUMMARY, ConfirmationStep.REASON, ConfirmationStep.ACKNOWLEDGE)
        elif tier == AuthorityTier.ADMINISTRATOR:
            steps = (ConfirmationStep.IMPACT_SUMMARY, ConfirmationStep.REASON)
        else:
            steps = (ConfirmationStep.CONFIRM,)
        return cls(tier=tier, steps=steps)

    def validate(self, confirmation: "ConfirmationInput") -> Optional[str]:
        """Return the cleaned reason, or raise if the confirmation is incomplete."""
        reason = (confirmation.reason or "").strip() or None
        if (self.requires_reason or confirmation.reason_required) and not reason:
            raise ValidationError("A reason is required for this action")
        if self.requires_acknowledgment and not confirmation.acknowledged:
            raise ValidationError("Please acknowledge the impact of this action")
        return reason


@dataclass(frozen=True)
class ConfirmationInput:
    reason: Optional[str] = None
    acknowledged: bool = False
    reason_required: bool = False
    impact_summary: Sequence[str] = field(default_factory=tuple)


def require_reason_for_tier(tier: AuthorityTier, reason: Optional[str], *, max_tier: AuthorityTier) -> Optional[str]:
    """Server-side copy of the reason rule: actors at ``max_tier`` or above must justify."""
    cleaned = (reason or "").strip() or None
    if tier <= max_tier and not cleaned:
        raise ValidationError("A reason is required for this action")
    return cleaned
