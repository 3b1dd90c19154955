from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditAction, AuditEntry
from .repository import AuditRepository


def _to_entry(r: dict) -> AuditEntry:
    return AuditEntry(
        log_id=int(r["log_id"]),
        entity_type=r["entity_type"],
        entity_id=str(r["entity_id"]),
        action=AuditAction(r["action"]),
        performed_by=r.get("performed_by"),
        previous_values=from_json(r.get("previous_values")),
        new_values=from_json(r.get("new_values")),
        notes=r.get("notes"),
        created_at=r["created_at"],
    )


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        entity_type: str,
        entity_id: str,
        action: AuditAction,
        performed_by: Optional[int],
        previous_values: Optional[dict],
        new_values: Optional[dict],
        notes: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(entity_type, entity_id, action, performed_by, previous_values, new_values, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entity_type,
                    str(entity_id),
                    action.value,
                    performed_by,
                    to_json(previous_values),
                    to_json(new_values),
                    notes,
                ),
            )
            return int(cur.lastrowid)

    def list_for_entity(self, *, entity_type: str, entity_id: str) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, entity_type, entity_id, action, performed_by,
                       previous_values, new_values, notes, created_at
                FROM audit_logs
                WHERE entity_type=%s AND entity_id=%s
                ORDER BY created_at, log_id
                """,
                (entity_type, str(entity_id)),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def list_recent(self, *, limit: int, entity_type: Optional[str] = None) -> Sequence[AuditEntry]:
        where = "WHERE entity_type=%s" if entity_type else ""
        params: tuple = (entity_type, int(limit)) if entity_type else (int(limit),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT log_id, entity_type, entity_id, action, performed_by,
                       previous_values, new_values, notes, created_at
                FROM audit_logs
                {where}
                ORDER BY created_at DESC, log_id DESC
                LIMIT %s
                """,
                params,
            )
            return [_to_entry(r) for r in fetchall(cur)]
