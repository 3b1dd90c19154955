from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import VerificationCode
from .repository import VerificationCodeRepository


class MySQLVerificationCodeRepository(VerificationCodeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, phone_number: str) -> Optional[VerificationCode]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT phone_number, user_id, code, sent_at, expires_at FROM verification_codes WHERE phone_number=%s",
                (phone_number,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return VerificationCode(
                phone_number=r["phone_number"],
                code=r["code"],
                sent_at=r["sent_at"],
                expires_at=r["expires_at"],
                user_id=r.get("user_id"),
            )

    def save(self, code: VerificationCode) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO verification_codes(phone_number, user_id, code, sent_at, expires_at)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    user_id=VALUES(user_id), code=VALUES(code),
                    sent_at=VALUES(sent_at), expires_at=VALUES(expires_at)
                """,
                (code.phone_number, code.user_id, code.code, code.sent_at, code.expires_at),
            )

    def delete(self, phone_number: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM verification_codes WHERE phone_number=%s", (phone_number,))

    def purge_expired(self, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM verification_codes WHERE expires_at < %s", (now,))
            return int(cur.rowcount)
