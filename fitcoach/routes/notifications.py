from flask import Blueprint, request, jsonify

from fitcoach.extensions import db
from fitcoach.schemas.notifications import NotificationSchema, NotificationArgsSchema, BulkNotificationSchema
from fitcoach.services import notifications
from fitcoach.utils.decorators import role_required

notifications_bp = Blueprint("notifications", __name__)

notification_schema = NotificationSchema()
notification_args_schema = NotificationArgsSchema()
bulk_schema = BulkNotificationSchema()


@notifications_bp.route("", methods=["GET"])
@role_required()
def list_notifications(current_user):
    args = notification_args_schema.load(request.args)
    result = notifications.list_notifications(db.session, current_user, **args)
    return jsonify({"success": True, **result}), 200


@notifications_bp.route("", methods=["POST"])
@role_required("trainer", "nutritionist")
def create_notification(current_user):
    data = notification_schema.load(request.get_json() or {})
    user_id = data.pop("user_id")
    notification = notifications.create_notification(
        db.session, user_id, data.pop("title"), data.pop("message"), data.pop("type"),
        sender_id=current_user.id, **data
    )
    return jsonify({"success": True, "notification": notification.to_dict()}), 201


@notifications_bp.route("/bulk", methods=["POST"])
@role_required("trainer", "nutritionist")
def bulk_notify(current_user):
    data = bulk_schema.load(request.get_json() or {})
    result = notifications.broadcast(
        db.session, current_user, data.pop("title"), data.pop("message"), **data
    )
    return jsonify({"success": True, **result}), 201


@notifications_bp.route("/stats", methods=["GET"])
@role_required()
def stats(current_user):
    return jsonify({"success": True, "stats": notifications.notification_stats(db.session, current_user)}), 200


@notifications_bp.route("/<int:notification_id>/read", methods=["PUT"])
@role_required()
def mark_read(notification_id, current_user):
    notification = notifications.mark_read(db.session, notification_id, current_user)
    return jsonify({"success": True, "notification": notification.to_dict()}), 200


@notifications_bp.route("/read-all", methods=["PUT"])
@role_required()
def mark_all_read(current_user):
    updated = notifications.mark_all_read(db.session, current_user)
    return jsonify({"success": True, "updated": updated}), 200


@notifications_bp.route("/<int:notification_id>", methods=["DELETE"])
@role_required()
def delete_notification(notification_id, current_user):
    notifications.soft_delete(db.session, notification_id, current_user)
    return jsonify({"success": True, "msg": "Notification deleted"}), 200
