from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ChannelType
from .model import Channel, ChatMessage


class ChatRepository(Protocol):
    def create_channel(
        self,
        *,
        name: str,
        channel_type: ChannelType,
        created_by: int,
        member_ids: Sequence[int],
        now: datetime,
    ) -> int:
        """Create the channel with its creator and members as participants."""
        raise NotImplementedError

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        raise NotImplementedError

    def list_channels_for_user(self, user_id: int) -> Sequence[Channel]:
        raise NotImplementedError

    def add_participant(self, *, channel_id: int, user_id: int, now: datetime) -> bool:
        """Return False if the user was already a participant."""
        raise NotImplementedError

    def is_participant(self, *, channel_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def add_message(self, *, channel_id: int, sender_id: int, content: str, now: datetime) -> int:
        raise NotImplementedError

    def list_messages(self, *, channel_id: int, limit: int) -> Sequence[ChatMessage]:
        """Latest ``limit`` messages, oldest first."""
        raise NotImplementedError

    def mark_read(self, *, channel_id: int, user_id: int, now: datetime) -> bool:
        raise NotImplementedError

    def unread_counts(self, user_id: int) -> dict[int, int]:
        raise NotImplementedError
