from __future__ import annotations

import re
from datetime import timedelta

import pytest

from src.workforce_hub.workforce_hub.authz.context import AuthorizationContext
from src.workforce_hub.workforce_hub.core.enums import Role
from src.workforce_hub.workforce_hub.core.exceptions import ValidationError
from src.workforce_hub.workforce_hub.verification.model import SendResult
from src.workforce_hub.workforce_hub.verification.service import PhoneVerificationService, normalize_phone
from tests.fakes import T0, FakeUserRepo, FakeVerificationRepo, RecordingSmsSender, make_user

PHONE = "+15551234567"


@pytest.fixture
def env():
    users = FakeUserRepo([make_user(1, Role.EMPLOYEE)])
    codes = FakeVerificationRepo()
    sms = RecordingSmsSender()
    return PhoneVerificationService(codes, users, sms), users, codes, sms


@pytest.fixture
def ctx():
    return AuthorizationContext.for_role(user_id=1, role=Role.EMPLOYEE)


def sent_code(sms):
    return re.search(r"\b(\d{6})\b", sms.sent[-1][1]).group(1)


def test_normalize_phone():
    assert normalize_phone(" +1 555 123 4567 ") == PHONE
    assert normalize_phone("0015551234567") == PHONE


def test_send_then_verify_sets_phone(env, ctx):
    service, users, codes, sms = env

    assert service.send_code(ctx, phone_number=PHONE, now=T0) == SendResult(sent=True)
    assert sms.sent[0][0] == PHONE
    assert "expires in 10 minutes" in sms.sent[0][1]

    phone = service.verify_code(ctx, phone_number=PHONE, code=sent_code(sms), now=T0 + timedelta(minutes=2))

    assert phone == PHONE
    assert users.get_by_id(1).phone_number == PHONE
    assert PHONE not in codes.codes


def test_resend_inside_window_is_throttled(env, ctx):
    service, _, _, sms = env
    service.send_code(ctx, phone_number=PHONE, now=T0)

    result = service.send_code(ctx, phone_number=PHONE, now=T0 + timedelta(seconds=20))

    assert result == SendResult(sent=False, retry_after=40)
    assert len(sms.sent) == 1

    assert service.send_code(ctx, phone_number=PHONE, now=T0 + timedelta(seconds=61)).sent
    assert len(sms.sent) == 2


def test_expired_code_is_deleted(env, ctx):
    service, _, codes, sms = env
    service.send_code(ctx, phone_number=PHONE, now=T0)

    with pytest.raises(ValidationError, match="expired"):
        service.verify_code(ctx, phone_number=PHONE, code=sent_code(sms), now=T0 + timedelta(minutes=11))
    assert PHONE not in codes.codes


def test_wrong_code_keeps_stored_code(env, ctx):
    service, users, codes, sms = env
    service.send_code(ctx, phone_number=PHONE, now=T0)
    wrong = "000000" if sent_code(sms) != "000000" else "111111"

    with pytest.raises(ValidationError, match="Invalid verification code"):
        service.verify_code(ctx, phone_number=PHONE, code=wrong, now=T0)
    assert PHONE in codes.codes
    assert users.get_by_id(1).phone_number is None


@pytest.mark.parametrize("phone, code", [("", "123456"), ("abc", "123456"), (PHONE, "")])
def test_input_validation(env, ctx, phone, code):
    with pytest.raises(ValidationError):
        env[0].verify_code(ctx, phone_number=phone, code=code, now=T0)


def test_verify_without_sending(env, ctx):
    with pytest.raises(ValidationError, match="No verification code"):
        env[0].verify_code(ctx, phone_number=PHONE, code="123456", now=T0)
