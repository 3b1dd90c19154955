from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import Role, RoleApprovalStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import RoleApproval
from .repository import RoleApprovalRepository


class MySQLRoleApprovalRepository(RoleApprovalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        token: str,
        requested_by: int,
        target_user_id: int,
        target_user_name: str,
        current_overseer_id: Optional[int],
        expires_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO role_approvals(
                    token, requested_by, target_user_id, target_user_name, current_overseer_id, status, expires_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    token,
                    int(requested_by),
                    int(target_user_id),
                    target_user_name,
                    current_overseer_id,
                    RoleApprovalStatus.PENDING.value,
                    expires_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_token(self, token: str) -> Optional[RoleApproval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT approval_id, token, requested_by, target_user_id, target_user_name,
                       current_overseer_id, status, expires_at, processed_at, created_at
                FROM role_approvals
                WHERE token=%s
                """,
                (token,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return RoleApproval(
                approval_id=int(r["approval_id"]),
                token=r["token"],
                requested_by=int(r["requested_by"]),
                target_user_id=int(r["target_user_id"]),
                target_user_name=r["target_user_name"],
                status=RoleApprovalStatus(r["status"]),
                expires_at=r["expires_at"],
                current_overseer_id=r.get("current_overseer_id"),
                processed_at=r.get("processed_at"),
                created_at=r.get("created_at"),
            )

    def has_pending_for_target(self, target_user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM role_approvals WHERE target_user_id=%s AND status=%s LIMIT 1",
                (int(target_user_id), RoleApprovalStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def resolve(self, *, approval_id: int, status: RoleApprovalStatus, processed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE role_approvals SET status=%s, processed_at=%s WHERE approval_id=%s AND status=%s",
                (status.value, processed_at, int(approval_id), RoleApprovalStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def approve_and_transfer(
        self,
        *,
        approval_id: int,
        from_user_id: int,
        to_user_id: int,
        processed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE role_approvals SET status=%s, processed_at=%s WHERE approval_id=%s AND status=%s",
                (RoleApprovalStatus.APPROVED.value, processed_at, int(approval_id), RoleApprovalStatus.PENDING.value),
            )
            if cur.rowcount == 0:
                return False

            cur.execute(
                "UPDATE users SET role=%s WHERE user_id=%s AND role=%s",
                (Role.USER_ADMIN.value, int(from_user_id), Role.GENERAL_OVERSEER.value),
            )
            cur.execute(
                "UPDATE users SET role=%s WHERE user_id=%s",
                (Role.GENERAL_OVERSEER.value, int(to_user_id)),
            )
            if cur.rowcount == 0:
                # Target vanished; roll the whole transfer back.
                raise LookupError(f"user {to_user_id} not found")
            return True
