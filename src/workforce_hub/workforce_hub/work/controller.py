from __future__ import annotations

from flask import Flask, abort, jsonify

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..core.enums import WorkItemKind
from ..core.exceptions import DomainError
from .model import WorkItem

_KINDS = {"tasks": WorkItemKind.TASK, "reports": WorkItemKind.REPORT}


def _kind(segment: str) -> WorkItemKind:
    kind = _KINDS.get(segment)
    if kind is None:
        abort(404)
    return kind


def _dt(value):
    return value.isoformat() if value else None


def serialize_work_item(item: WorkItem) -> dict:
    return {
        "id": item.item_id,
        "kind": item.kind.value,
        "user_id": item.user_id,
        "title": item.title,
        "platform": item.platform,
        "work_date": item.work_date.isoformat(),
        "description": item.description,
        "hours_worked": str(item.hours_worked),
        "base_rate": str(item.base_rate),
        "current_rate": str(item.current_rate),
        "earnings": str(item.earnings),
        "final_status": item.final_status.value,
        "team_lead_status": item.team_lead_status.value if item.team_lead_status else None,
        "team_lead_rejection_reason": item.team_lead_rejection_reason,
        "team_lead_reviewed_by": item.team_lead_reviewed_by,
        "team_lead_reviewed_at": _dt(item.team_lead_reviewed_at),
        "admin_status": item.admin_status.value if item.admin_status else None,
        "admin_reason": item.admin_reason,
        "admin_reviewed_by": item.admin_reviewed_by,
        "admin_reviewed_at": _dt(item.admin_reviewed_at),
    }


def register(app: Flask, container) -> None:
    service = container.work_item_service

    @app.route("/work/<kind_segment>", methods=["POST"], endpoint="submit_work_item")
    @login_required
    def submit_work_item(kind_segment: str):
        kind = _kind(kind_segment)
        try:
            body = json_body()
            item_id = service.submit(
                current_context(),
                kind=kind,
                title=body.get("title", ""),
                work_date=parse_iso_date(body.get("work_date"), "Work date"),
                hours_worked=body.get("hours_worked", 0),
                base_rate=body.get("base_rate", 0),
                platform=body.get("platform"),
                description=body.get("description"),
            )
            return jsonify({"id": item_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("submit_work_item", e)

    @app.route("/work/<kind_segment>/mine", methods=["GET"], endpoint="my_work_items")
    @login_required
    def my_work_items(kind_segment: str):
        kind = _kind(kind_segment)
        items = service.list_mine(current_context(), kind=kind)
        return jsonify({"items": [serialize_work_item(i) for i in items]})

    @app.route("/work/<kind_segment>/queue", methods=["GET"], endpoint="review_queue")
    @login_required
    def review_queue(kind_segment: str):
        kind = _kind(kind_segment)
        try:
            items = service.list_review_queue(current_context(), kind=kind)
            return jsonify({"items": [serialize_work_item(i) for i in items]})
        except DomainError as e:
            return error_response(e)

    @app.route("/work/items/<int:item_id>", methods=["GET"], endpoint="get_work_item")
    @login_required
    def get_work_item(item_id: int):
        try:
            return jsonify(serialize_work_item(service.get(current_context(), item_id=item_id)))
        except DomainError as e:
            return error_response(e)

    @app.route("/work/items/<int:item_id>/team-lead-review", methods=["POST"], endpoint="team_lead_review")
    @login_required
    def team_lead_review(item_id: int):
        try:
            body = json_body()
            item = service.review_as_team_lead(
                current_context(),
                item_id=item_id,
                decision=body.get("decision"),
                reason=body.get("reason"),
            )
            return jsonify(serialize_work_item(item))
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("team_lead_review", e)

    @app.route("/work/items/<int:item_id>/override", methods=["POST"], endpoint="override_work_item")
    @login_required
    def override_work_item(item_id: int):
        try:
            body = json_body()
            item = service.override(
                current_context(),
                item_id=item_id,
                decision=body.get("decision"),
                reason=body.get("reason"),
            )
            return jsonify(serialize_work_item(item))
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("override_work_item", e)

    @app.route("/work/items/<int:item_id>/rate", methods=["POST"], endpoint="adjust_rate")
    @login_required
    def adjust_rate(item_id: int):
        try:
            body = json_body()
            item = service.adjust_rate(
                current_context(),
                item_id=item_id,
                new_rate=body.get("rate"),
                reason=body.get("reason"),
            )
            return jsonify(serialize_work_item(item))
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("adjust_rate", e)

    @app.route("/work/confirmation-policy", methods=["GET"], endpoint="confirmation_policy")
    @login_required
    def confirmation_policy():
        policy = service.confirmation_policy(current_context())
        return jsonify(
            {
                "tier": int(policy.tier),
                "total_steps": policy.total_steps,
                "steps": [s.value for s in policy.steps],
                "requires_reason": policy.requires_reason,
                "requires_acknowledgment": policy.requires_acknowledgment,
            }
        )
