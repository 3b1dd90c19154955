from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ChannelType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Channel, ChatMessage
from .repository import ChatRepository


def _to_channel(r: dict) -> Channel:
    return Channel(
        channel_id=int(r["channel_id"]),
        name=r["name"],
        channel_type=ChannelType(r["channel_type"]),
        created_by=int(r["created_by"]),
        created_at=r.get("created_at"),
    )


class MySQLChatRepository(ChatRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_channel(
        self,
        *,
        name: str,
        channel_type: ChannelType,
        created_by: int,
        member_ids: Sequence[int],
        now: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO chat_channels(name, channel_type, created_by, created_at) VALUES(%s,%s,%s,%s)",
                (name, channel_type.value, int(created_by), now),
            )
            channel_id = int(cur.lastrowid)
            participants = [int(created_by)] + [int(m) for m in member_ids if int(m) != int(created_by)]
            cur.executemany(
                "INSERT IGNORE INTO chat_participants(channel_id, user_id, joined_at, last_read_at) VALUES(%s,%s,%s,%s)",
                [(channel_id, uid, now, now) for uid in participants],
            )
            return channel_id

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT channel_id, name, channel_type, created_by, created_at FROM chat_channels WHERE channel_id=%s",
                (int(channel_id),),
            )
            row = fetchone(cur)
            return _to_channel(row) if row else None

    def list_channels_for_user(self, user_id: int) -> Sequence[Channel]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.channel_id, c.name, c.channel_type, c.created_by, c.created_at
                FROM chat_channels c
                JOIN chat_participants p ON p.channel_id = c.channel_id
                WHERE p.user_id=%s
                ORDER BY c.channel_type, c.name
                """,
                (int(user_id),),
            )
            return [_to_channel(r) for r in fetchall(cur)]

    def add_participant(self, *, channel_id: int, user_id: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO chat_participants(channel_id, user_id, joined_at, last_read_at) VALUES(%s,%s,%s,%s)",
                (int(channel_id), int(user_id), now, now),
            )
            return cur.rowcount > 0

    def is_participant(self, *, channel_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM chat_participants WHERE channel_id=%s AND user_id=%s",
                (int(channel_id), int(user_id)),
            )
            return fetchone(cur) is not None

    def add_message(self, *, channel_id: int, sender_id: int, content: str, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO chat_messages(channel_id, sender_id, content, created_at) VALUES(%s,%s,%s,%s)",
                (int(channel_id), int(sender_id), content, now),
            )
            return int(cur.lastrowid)

    def list_messages(self, *, channel_id: int, limit: int) -> Sequence[ChatMessage]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.message_id, m.channel_id, m.sender_id, m.content, m.created_at, u.full_name AS sender_name
                FROM chat_messages m
                LEFT JOIN users u ON u.user_id = m.sender_id
                WHERE m.channel_id=%s
                ORDER BY m.created_at DESC, m.message_id DESC
                LIMIT %s
                """,
                (int(channel_id), int(limit)),
            )
            rows = fetchall(cur)
        return [
            ChatMessage(
                message_id=int(r["message_id"]),
                channel_id=int(r["channel_id"]),
                sender_id=int(r["sender_id"]),
                content=r["content"],
                created_at=r["created_at"],
                sender_name=r.get("sender_name"),
            )
            for r in reversed(rows)
        ]

    def mark_read(self, *, channel_id: int, user_id: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE chat_participants SET last_read_at=%s WHERE channel_id=%s AND user_id=%s",
                (now, int(channel_id), int(user_id)),
            )
            return cur.rowcount > 0

    def unread_counts(self, user_id: int) -> dict[int, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.channel_id, COUNT(m.message_id) AS unread
                FROM chat_participants p
                LEFT JOIN chat_messages m
                  ON m.channel_id = p.channel_id
                 AND m.sender_id <> p.user_id
                 AND (p.last_read_at IS NULL OR m.created_at > p.last_read_at)
                WHERE p.user_id=%s
                GROUP BY p.channel_id
                """,
                (int(user_id),),
            )
            return {int(r["channel_id"]): int(r["unread"]) for r in fetchall(cur)}
