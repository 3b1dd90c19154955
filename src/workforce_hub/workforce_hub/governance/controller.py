from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..core.enums import ResolutionStatus
from ..core.exceptions import DomainError, ValidationError
from .model import ResolutionRequest


def _dt(value):
    return value.isoformat() if value else None


def serialize_request(req: ResolutionRequest) -> dict:
    return {
        "id": req.request_id,
        "raised_by": req.raised_by,
        "category": req.category,
        "title": req.title,
        "description": req.description,
        "priority": req.priority.value,
        "status": req.status.value,
        "sla_due_at": _dt(req.sla_due_at),
        "created_at": _dt(req.created_at),
        "escalation_reason": req.escalation_reason,
        "resolution": req.resolution,
        "resolved_by": req.resolved_by,
        "resolved_at": _dt(req.resolved_at),
    }


def register(app: Flask, container) -> None:
    service = container.resolution_service

    @app.route("/governance/requests", methods=["POST"], endpoint="create_resolution_request")
    @login_required
    def create_resolution_request():
        try:
            body = json_body()
            request_id = service.create(
                current_context(),
                category=body.get("category", ""),
                title=body.get("title", ""),
                description=body.get("description", ""),
                priority=body.get("priority") or "normal",
            )
            return jsonify({"id": request_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("create_resolution_request", e)

    @app.route("/governance/requests", methods=["GET"], endpoint="list_resolution_requests")
    @login_required
    def list_resolution_requests():
        try:
            raw_status = request.args.get("status")
            try:
                status = ResolutionStatus(raw_status) if raw_status else None
            except ValueError:
                raise ValidationError("Invalid status")
            items = service.list_requests(current_context(), status=status)
            return jsonify({"items": [serialize_request(r) for r in items]})
        except DomainError as e:
            return error_response(e)

    @app.route("/governance/requests/<int:request_id>", methods=["GET"], endpoint="get_resolution_request")
    @login_required
    def get_resolution_request(request_id: int):
        try:
            return jsonify(serialize_request(service.get(current_context(), request_id=request_id)))
        except DomainError as e:
            return error_response(e)

    @app.route("/governance/requests/<int:request_id>/status", methods=["POST"], endpoint="update_resolution_status")
    @login_required
    def update_resolution_status(request_id: int):
        try:
            body = json_body()
            req = service.transition(
                current_context(),
                request_id=request_id,
                status=body.get("status"),
                note=body.get("note"),
            )
            return jsonify(serialize_request(req))
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("update_resolution_status", e)
