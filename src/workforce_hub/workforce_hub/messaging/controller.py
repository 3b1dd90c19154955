from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_context, error_response, json_body, login_required, unexpected_error
from ..core.exceptions import DomainError, ValidationError
from .model import Channel, ChatMessage


def serialize_channel(channel: Channel, unread: int = 0) -> dict:
    return {
        "id": channel.channel_id,
        "name": channel.name,
        "channel_type": channel.channel_type.value,
        "created_by": channel.created_by,
        "unread_count": unread,
    }


def serialize_message(message: ChatMessage) -> dict:
    return {
        "id": message.message_id,
        "channel_id": message.channel_id,
        "sender_id": message.sender_id,
        "sender_name": message.sender_name,
        "content": message.content,
        "created_at": message.created_at.isoformat(),
    }


def register(app: Flask, container) -> None:
    service = container.chat_service

    @app.route("/messaging/channels", methods=["GET"], endpoint="list_channels")
    @login_required
    def list_channels():
        ctx = current_context()
        counts = service.unread_counts(ctx)
        channels = service.list_channels(ctx)
        return jsonify({"channels": [serialize_channel(c, counts.get(c.channel_id, 0)) for c in channels]})

    @app.route("/messaging/channels", methods=["POST"], endpoint="create_channel")
    @login_required
    def create_channel():
        try:
            body = json_body()
            member_ids = body.get("member_ids") or []
            if not isinstance(member_ids, list):
                raise ValidationError("member_ids must be a list")
            channel_id = service.create_channel(
                current_context(),
                name=body.get("name", ""),
                channel_type=body.get("channel_type", ""),
                member_ids=member_ids,
            )
            return jsonify({"id": channel_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("create_channel", e)

    @app.route("/messaging/channels/<int:channel_id>/join", methods=["POST"], endpoint="join_channel")
    @login_required
    def join_channel(channel_id: int):
        try:
            joined = service.join(current_context(), channel_id=channel_id)
            return jsonify({"joined": joined})
        except DomainError as e:
            return error_response(e)

    @app.route("/messaging/channels/<int:channel_id>/messages", methods=["GET"], endpoint="list_messages")
    @login_required
    def list_messages(channel_id: int):
        try:
            limit = request.args.get("limit", default=100, type=int)
            messages = service.list_messages(current_context(), channel_id=channel_id, limit=limit)
            return jsonify({"messages": [serialize_message(m) for m in messages]})
        except DomainError as e:
            return error_response(e)

    @app.route("/messaging/channels/<int:channel_id>/messages", methods=["POST"], endpoint="post_message")
    @login_required
    def post_message(channel_id: int):
        try:
            body = json_body()
            message_id = service.post(current_context(), channel_id=channel_id, content=body.get("content", ""))
            return jsonify({"id": message_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception as e:
            return unexpected_error("post_message", e)

    @app.route("/messaging/channels/<int:channel_id>/read", methods=["POST"], endpoint="mark_channel_read")
    @login_required
    def mark_channel_read(channel_id: int):
        try:
            service.mark_read(current_context(), channel_id=channel_id)
            return jsonify({"success": True})
        except DomainError as e:
            return error_response(e)
