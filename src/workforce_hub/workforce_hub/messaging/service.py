from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..authz.capabilities import Capability
from ..authz.context import AuthorizationContext
from ..common.datetime_utils import utc_now
from ..common.validators import require_max_length, require_min_length, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT, MESSAGE_MAX_LENGTH
from ..core.enums import AuthorityTier, ChannelType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import Channel, ChatMessage
from .repository import ChatRepository

logger = logging.getLogger(__name__)

# Roles that may open team/department/announcement channels; anyone may open a direct one.
CHANNEL_CREATOR_ROLES = (Role.GENERAL_OVERSEER, Role.USER_ADMIN, Role.DEPARTMENT_HEAD, Role.TEAM_LEAD)


def _parse_channel_type(value) -> ChannelType:
    try:
        return value if isinstance(value, ChannelType) else ChannelType(str(value))
    except ValueError:
        raise ValidationError("Invalid channel type")


class ChatService:
    """Channels, participants and messages."""

    def __init__(self, chat: ChatRepository, users: UserRepository):
        self._chat = chat
        self._users = users

    def create_channel(
        self,
        ctx: AuthorizationContext,
        *,
        name: str,
        channel_type,
        member_ids: Sequence[int] = (),
        now: Optional[datetime] = None,
    ) -> int:
        channel_type = _parse_channel_type(channel_type)
        name = require_non_empty(name, "Name")
        require_min_length(name, "Name", 2)
        require_max_length(name, "Name", 50)

        if channel_type == ChannelType.ANNOUNCEMENT:
            if ctx.tier > AuthorityTier.ADMINISTRATOR or not ctx.has_capability(Capability.CREATE_ANNOUNCEMENTS):
                raise AuthorizationError("Only administrators can create announcement channels")
        elif channel_type != ChannelType.DIRECT and ctx.role not in CHANNEL_CREATOR_ROLES:
            raise AuthorizationError("You do not have permission to create channels")

        try:
            members = sorted({int(m) for m in member_ids} - {ctx.user_id})
        except (TypeError, ValueError):
            raise ValidationError("member_ids must be user ids")
        if channel_type == ChannelType.DIRECT and len(members) != 1:
            raise ValidationError("A direct conversation needs exactly one other participant")
        for member_id in members:
            if not self._users.get_by_id(member_id):
                raise NotFoundError(f"User {member_id} not found")

        channel_id = self._chat.create_channel(
            name=name,
            channel_type=channel_type,
            created_by=ctx.user_id,
            member_ids=members,
            now=now or utc_now(),
        )
        logger.info("Channel %s (%s) created by %s", channel_id, channel_type.value, ctx.user_id)
        return channel_id

    def list_channels(self, ctx: AuthorizationContext) -> Sequence[Channel]:
        return self._chat.list_channels_for_user(ctx.user_id)

    def join(self, ctx: AuthorizationContext, *, channel_id: int, now: Optional[datetime] = None) -> bool:
        channel = self._require_channel(channel_id)
        if channel.channel_type == ChannelType.DIRECT:
            raise AuthorizationError("Direct conversations cannot be joined")
        return self._chat.add_participant(channel_id=channel.channel_id, user_id=ctx.user_id, now=now or utc_now())

    def post(
        self,
        ctx: AuthorizationContext,
        *,
        channel_id: int,
        content: str,
        now: Optional[datetime] = None,
    ) -> int:
        channel = self._require_membership(ctx, channel_id)
        content = require_max_length(require_non_empty(content, "Message"), "Message", MESSAGE_MAX_LENGTH)
        if channel.channel_type == ChannelType.ANNOUNCEMENT and not ctx.has_capability(Capability.CREATE_ANNOUNCEMENTS):
            raise AuthorizationError("Only administrators can post announcements")
        return self._chat.add_message(
            channel_id=channel.channel_id, sender_id=ctx.user_id, content=content, now=now or utc_now()
        )

    def list_messages(
        self, ctx: AuthorizationContext, *, channel_id: int, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> Sequence[ChatMessage]:
        channel = self._require_membership(ctx, channel_id)
        return self._chat.list_messages(channel_id=channel.channel_id, limit=max(1, min(int(limit), DEFAULT_HISTORY_LIMIT)))

    def mark_read(self, ctx: AuthorizationContext, *, channel_id: int, now: Optional[datetime] = None) -> None:
        channel = self._require_membership(ctx, channel_id)
        self._chat.mark_read(channel_id=channel.channel_id, user_id=ctx.user_id, now=now or utc_now())

    def unread_counts(self, ctx: AuthorizationContext) -> dict[int, int]:
        return self._chat.unread_counts(ctx.user_id)

    def _require_channel(self, channel_id: int) -> Channel:
        channel = self._chat.get_channel(int(channel_id))
        if not channel:
            raise NotFoundError("Channel not found")
        return channel

    def _require_membership(self, ctx: AuthorizationContext, channel_id: int) -> Channel:
        channel = self._require_channel(channel_id)
        if not self._chat.is_participant(channel_id=channel.channel_id, user_id=ctx.user_id):
            raise AuthorizationError("You are not a participant of this channel")
        return channel
