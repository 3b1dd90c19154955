from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_context, error_response, login_required
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import DomainError
from .model import AuditEntry


def serialize_entry(entry: AuditEntry) -> dict:
    return {
        "id": entry.log_id,
        "entity_type": entry.entity_type,
        "entity_id": entry.entity_id,
        "action": entry.action.value,
        "performed_by": entry.performed_by,
        "previous_values": entry.previous_values,
        "new_values": entry.new_values,
        "notes": entry.notes,
        "created_at": entry.created_at.isoformat(),
    }


def register(app: Flask, container) -> None:
    service = container.audit_service

    @app.route("/audit", methods=["GET"], endpoint="audit_recent")
    @login_required
    def audit_recent():
        try:
            entries = service.recent(
                current_context(),
                limit=request.args.get("limit", default=DEFAULT_HISTORY_LIMIT, type=int),
                entity_type=request.args.get("entity_type") or None,
            )
            return jsonify({"entries": [serialize_entry(e) for e in entries]})
        except DomainError as e:
            return error_response(e)

    @app.route("/audit/<entity_type>/<entity_id>", methods=["GET"], endpoint="audit_timeline")
    @login_required
    def audit_timeline(entity_type: str, entity_id: str):
        try:
            entries = service.timeline(current_context(), entity_type=entity_type, entity_id=entity_id)
            return jsonify({"entries": [serialize_entry(e) for e in entries]})
        except DomainError as e:
            return error_response(e)
