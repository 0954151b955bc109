from flask import Blueprint, request, jsonify

from fitcoach.extensions import db
from fitcoach.schemas.base import PaginationArgsSchema
from fitcoach.schemas.subscriptions import SubscribeSchema, CancelSubscriptionSchema
from fitcoach.services import subscriptions
from fitcoach.utils.decorators import role_required

subscriptions_bp = Blueprint("subscriptions", __name__)

subscribe_schema = SubscribeSchema()
cancel_schema = CancelSubscriptionSchema()
history_args_schema = PaginationArgsSchema()


@subscriptions_bp.route("/plans", methods=["GET"])
def list_plans():
    user_type = request.args.get("user_type")
    return jsonify({"success": True, "plans": subscriptions.list_plans(user_type)}), 200


@subscriptions_bp.route("/current", methods=["GET"])
@role_required("trainer", "nutritionist")
def current(current_user):
    subscription = subscriptions.current_subscription(db.session, current_user)
    return jsonify({"success": True, "subscription": subscription}), 200


@subscriptions_bp.route("/subscribe", methods=["POST"])
@role_required("trainer", "nutritionist")
def subscribe(current_user):
    data = subscribe_schema.load(request.get_json() or {})
    subscription = subscriptions.subscribe(db.session, current_user, **data)
    return jsonify({
        "success": True,
        "msg": "Subscription activated successfully",
        "subscription": subscription.to_dict(),
    }), 201


@subscriptions_bp.route("/cancel", methods=["POST"])
@role_required("trainer", "nutritionist")
def cancel(current_user):
    data = cancel_schema.load(request.get_json() or {})
    subscription = subscriptions.cancel(db.session, current_user, data["reason"])
    return jsonify({
        "success": True,
        "msg": "Subscription cancelled. Access continues until the end of the paid period.",
        "subscription": subscription.to_dict(),
    }), 200


@subscriptions_bp.route("/history", methods=["GET"])
@role_required("trainer", "nutritionist")
def history(current_user):
    args = history_args_schema.load(request.args)
    result = subscriptions.history(db.session, current_user, args["page"], args["limit"])
    return jsonify({"success": True, **result}), 200
