from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import VerificationCode


class VerificationCodeRepository(Protocol):
    """One live code per phone number; saving replaces the previous one."""

    def get(self, phone_number: str) -> Optional[VerificationCode]:
        raise NotImplementedError

    def save(self, code: VerificationCode) -> None:
        raise NotImplementedError

    def delete(self, phone_number: str) -> None:
        raise NotImplementedError

    def purge_expired(self, now: datetime) -> int:
        raise NotImplementedError
