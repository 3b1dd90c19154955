from __future__ import annotations

from datetime import timedelta

import pytest

from src.workforce_hub.workforce_hub.authz.context import AuthorizationContext
from src.workforce_hub.workforce_hub.core.enums import ChannelType, Role
from src.workforce_hub.workforce_hub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.workforce_hub.workforce_hub.messaging.service import ChatService
from tests.fakes import T0, FakeChatRepo, FakeUserRepo, make_user

LEAD, ALICE, BOB, ADMIN = 1, 2, 3, 4


def ctx(user_id, role):
    return AuthorizationContext.for_role(user_id=user_id, role=role)


lead = ctx(LEAD, Role.TEAM_LEAD)
alice = ctx(ALICE, Role.EMPLOYEE)
bob = ctx(BOB, Role.EMPLOYEE)
admin = ctx(ADMIN, Role.REPORT_ADMIN)


@pytest.fixture
def chat():
    return FakeChatRepo()


@pytest.fixture
def service(chat):
    users = FakeUserRepo(
        [
            make_user(LEAD, Role.TEAM_LEAD),
            make_user(ALICE, Role.EMPLOYEE),
            make_user(BOB, Role.EMPLOYEE),
            make_user(ADMIN, Role.REPORT_ADMIN),
        ]
    )
    return ChatService(chat, users)


def test_team_lead_creates_team_channel_with_members(service, chat):
    channel_id = service.create_channel(lead, name="Team A", channel_type="team", member_ids=["2", LEAD], now=T0)

    assert chat.get_channel(channel_id).channel_type == ChannelType.TEAM
    assert chat.is_participant(channel_id=channel_id, user_id=LEAD)
    assert chat.is_participant(channel_id=channel_id, user_id=ALICE)
    assert not chat.is_participant(channel_id=channel_id, user_id=BOB)


@pytest.mark.parametrize(
    "creator, channel_type",
    [(alice, "team"), (alice, "department"), (lead, "announcement")],
)
def test_channel_creation_permissions(service, creator, channel_type):
    with pytest.raises(AuthorizationError):
        service.create_channel(creator, name="General", channel_type=channel_type, now=T0)


def test_admin_creates_announcement_channel(service):
    assert service.create_channel(admin, name="News", channel_type="announcement", now=T0) == 1


@pytest.mark.parametrize(
    "name, channel_type, members",
    [("x", "team", ()), ("y" * 51, "team", ()), ("Chat", "lobby", ()), ("Chat", "team", ["abc"])],
)
def test_channel_input_validation(service, name, channel_type, members):
    with pytest.raises(ValidationError):
        service.create_channel(lead, name=name, channel_type=channel_type, member_ids=members, now=T0)


def test_direct_channel_needs_one_existing_member(service):
    with pytest.raises(ValidationError):
        service.create_channel(alice, name="DM", channel_type="direct", member_ids=[BOB, LEAD], now=T0)
    with pytest.raises(NotFoundError):
        service.create_channel(alice, name="DM", channel_type="direct", member_ids=[99], now=T0)
    channel_id = service.create_channel(alice, name="DM", channel_type="direct", member_ids=[BOB], now=T0)

    with pytest.raises(AuthorizationError):
        service.join(lead, channel_id=channel_id, now=T0)


def test_join_then_post(service):
    channel_id = service.create_channel(lead, name="Team A", channel_type="team", now=T0)

    with pytest.raises(AuthorizationError):
        service.post(bob, channel_id=channel_id, content="hi", now=T0)

    assert service.join(bob, channel_id=channel_id, now=T0) is True
    assert service.join(bob, channel_id=channel_id, now=T0) is False
    service.post(bob, channel_id=channel_id, content="  hello  ", now=T0)

    (message,) = service.list_messages(lead, channel_id=channel_id)
    assert message.content == "hello"
    assert message.sender_id == BOB


def test_post_validation(service):
    channel_id = service.create_channel(lead, name="Team A", channel_type="team", now=T0)
    with pytest.raises(ValidationError):
        service.post(lead, channel_id=channel_id, content="   ", now=T0)
    with pytest.raises(ValidationError):
        service.post(lead, channel_id=channel_id, content="x" * 4001, now=T0)
    with pytest.raises(NotFoundError):
        service.post(lead, channel_id=404, content="hi", now=T0)


def test_only_announcers_post_in_announcement_channels(service):
    channel_id = service.create_channel(admin, name="News", channel_type="announcement", member_ids=[ALICE], now=T0)
    service.post(admin, channel_id=channel_id, content="Payday moved", now=T0)
    with pytest.raises(AuthorizationError):
        service.post(alice, channel_id=channel_id, content="ok", now=T0)


def test_unread_counts_ignore_own_messages(service):
    channel_id = service.create_channel(lead, name="Team A", channel_type="team", member_ids=[ALICE], now=T0)
    service.post(lead, channel_id=channel_id, content="one", now=T0 + timedelta(minutes=1))
    service.post(lead, channel_id=channel_id, content="two", now=T0 + timedelta(minutes=2))
    service.post(alice, channel_id=channel_id, content="reply", now=T0 + timedelta(minutes=3))

    assert service.unread_counts(alice) == {channel_id: 2}
    assert service.unread_counts(lead) == {channel_id: 1}

    service.mark_read(alice, channel_id=channel_id, now=T0 + timedelta(minutes=4))
    assert service.unread_counts(alice) == {channel_id: 0}
