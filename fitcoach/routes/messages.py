from flask import Blueprint, request, jsonify

from fitcoach.extensions import db
from fitcoach.schemas.base import PaginationArgsSchema
from fitcoach.schemas.notifications import MessageSchema, InboxArgsSchema
from fitcoach.services import messages
from fitcoach.utils.decorators import role_required

messages_bp = Blueprint("messages", __name__)

message_schema = MessageSchema()
inbox_args_schema = InboxArgsSchema()
sent_args_schema = PaginationArgsSchema()


@messages_bp.route("", methods=["POST"])
@role_required()
def send_message(current_user):
    data = message_schema.load(request.get_json() or {})
    message = messages.send_message(db.session, current_user, data.pop("recipient_id"), data.pop("body"), **data)
    return jsonify({"success": True, "message": message.to_dict()}), 201


@messages_bp.route("/inbox", methods=["GET"])
@role_required()
def inbox(current_user):
    args = inbox_args_schema.load(request.args)
    return jsonify({"success": True, **messages.list_inbox(db.session, current_user, **args)}), 200


@messages_bp.route("/sent", methods=["GET"])
@role_required()
def sent(current_user):
    args = sent_args_schema.load(request.args)
    return jsonify({"success": True, **messages.list_sent(db.session, current_user, **args)}), 200


@messages_bp.route("/<int:message_id>/read", methods=["PUT"])
@role_required()
def mark_read(message_id, current_user):
    message = messages.mark_message_read(db.session, message_id, current_user)
    return jsonify({"success": True, "message": message.to_dict()}), 200
