from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AuditAction, AuditEntry


class AuditRepository(Protocol):
    """Append-only: no update or delete."""

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
        raise NotImplementedError

    def list_for_entity(self, *, entity_type: str, entity_id: str) -> Sequence[AuditEntry]:
        raise NotImplementedError

    def list_recent(self, *, limit: int, entity_type: Optional[str] = None) -> Sequence[AuditEntry]:
        raise NotImplementedError
