from __future__ import annotations

import logging
import math
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional

from ..authz.context import AuthorizationContext
from ..common.datetime_utils import utc_now
from ..core.constants import VERIFICATION_CODE_TTL_MINUTES, VERIFICATION_RESEND_SECONDS
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository
from .model import SendResult, VerificationCode
from .repository import VerificationCodeRepository
from .sms import SmsSender

logger = logging.getLogger(__name__)

_PHONE_RE = re.compile(r"^\+?\d{6,15}$")


def normalize_phone(raw: Optional[str]) -> str:
    phone = re.sub(r"\s+", "", raw or "")
    if phone.startswith("00"):
        phone = "+" + phone[2:]
    return phone


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


class PhoneVerificationService:
    """Use case: prove ownership of a phone number with a one-time SMS code."""

    def __init__(
        self,
        codes: VerificationCodeRepository,
        users: UserRepository,
        sender: SmsSender,
        *,
        ttl_minutes: int = VERIFICATION_CODE_TTL_MINUTES,
        resend_seconds: int = VERIFICATION_RESEND_SECONDS,
    ):
        self._codes = codes
        self._users = users
        self._sender = sender
        self._ttl = timedelta(minutes=int(ttl_minutes))
        self._resend = timedelta(seconds=int(resend_seconds))

    def _phone(self, raw: Optional[str]) -> str:
        if not raw or not raw.strip():
            raise ValidationError("Phone number is required")
        phone = normalize_phone(raw)
        if not _PHONE_RE.match(phone):
            raise ValidationError("Invalid phone number")
        return phone

    def send_code(self, ctx: AuthorizationContext, *, phone_number: Optional[str], now: Optional[datetime] = None) -> SendResult:
        phone = self._phone(phone_number)
        now = now or utc_now()

        existing = self._codes.get(phone)
        if existing and now - existing.sent_at < self._resend:
            remaining = (existing.sent_at + self._resend - now).total_seconds()
            return SendResult(sent=False, retry_after=max(1, math.ceil(remaining)))

        code = generate_code()
        minutes = int(self._ttl.total_seconds() // 60)
        self._sender.send(
            phone,
            f"Your Workforce Hub verification code is: {code}. This code expires in {minutes} minutes.",
        )
        # Stored only after the provider accepted the message.
        self._codes.save(
            VerificationCode(phone_number=phone, code=code, sent_at=now, expires_at=now + self._ttl, user_id=ctx.user_id)
        )
        logger.info("Verification code sent for user %s", ctx.user_id)
        return SendResult(sent=True)

    def verify_code(
        self,
        ctx: AuthorizationContext,
        *,
        phone_number: Optional[str],
        code: Optional[str],
        now: Optional[datetime] = None,
    ) -> str:
        phone = self._phone(phone_number)
        if not code or not str(code).strip():
            raise ValidationError("Verification code is required")
        now = now or utc_now()

        stored = self._codes.get(phone)
        if not stored:
            raise ValidationError("No verification code found. Please request a new one.")
        if stored.is_expired(now):
            self._codes.delete(phone)
            raise ValidationError("Verification code has expired. Please request a new one.")
        if not secrets.compare_digest(stored.code, str(code).strip()):
            raise ValidationError("Invalid verification code")

        self._codes.delete(phone)
        if not self._users.set_phone_number(ctx.user_id, phone):
            raise ValidationError("Failed to update profile")
        logger.info("Phone number verified for user %s", ctx.user_id)
        return phone
