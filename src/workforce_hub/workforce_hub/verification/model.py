from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class VerificationCode:
    phone_number: str
    code: str
    sent_at: datetime
    expires_at: datetime
    user_id: Optional[int] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class SendResult:
    sent: bool
    retry_after: int = 0
