from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ChannelType


@dataclass(frozen=True)
class Channel:
    channel_id: int
    name: str
    channel_type: ChannelType
    created_by: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ChatMessage:
    message_id: int
    channel_id: int
    sender_id: int
    content: str
    created_at: datetime
    sender_name: Optional[str] = None
