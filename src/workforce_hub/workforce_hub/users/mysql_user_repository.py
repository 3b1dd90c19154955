from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, public_id, full_name, email, password_hash, role,
    department, team_lead_id, phone_number, phone_verified_at, is_active
"""


def _to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        public_id=str(r["public_id"]),
        full_name=r["full_name"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        department=r.get("department"),
        team_lead_id=r.get("team_lead_id"),
        phone_number=r.get("phone_number"),
        phone_verified_at=r.get("phone_verified_at"),
        is_active=bool(r.get("is_active", 1)),
    )


def _like_prefix(value: str) -> str:
    escaped = value.replace("!", "!!").replace("%", "!%").replace("_", "!_")
    return f"{escaped}%"


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE LOWER(email)=LOWER(%s)", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def find_by_public_id_prefix(self, prefix: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE public_id LIKE %s ESCAPE '!' ORDER BY user_id LIMIT 1",
                (_like_prefix(prefix.lower()),),
            )
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_by_roles(self, roles: Sequence[Role]) -> Sequence[User]:
        if not roles:
            return []
        values = [r.value for r in roles]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE is_active=1 AND role IN ({placeholders(values)}) ORDER BY user_id",
                tuple(values),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def get_current_overseer(self) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE role=%s ORDER BY user_id LIMIT 1",
                (Role.GENERAL_OVERSEER.value,),
            )
            row = fetchone(cur)
            return _to_user(row) if row else None

    def set_phone_number(self, user_id: int, phone_number: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET phone_number=%s, phone_verified_at=NOW() WHERE user_id=%s",
                (phone_number, int(user_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_admin_view(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.public_id, u.full_name, u.email, u.role, u.department,
                       u.is_active, lead.full_name AS team_lead_name
                FROM users u
                LEFT JOIN users lead ON lead.user_id = u.team_lead_id
                ORDER BY u.user_id
                """
            )
            out: list[dict] = []
            for r in fetchall(cur):
                user = _to_user({**r, "password_hash": ""})
                out.append(
                    {
                        "user_id": user.user_id,
                        "mpcn_id": user.mpcn_id,
                        "full_name": user.full_name,
                        "email": user.email,
                        "role": user.role.value,
                        "department": user.department or "",
                        "team_lead": r.get("team_lead_name") or "-",
                        "is_active": user.is_active,
                    }
                )
            return out
