import logging

import stripe
from flask import Blueprint, request, jsonify, current_app

from fitcoach.errors import ValidationError
from fitcoach.extensions import db
from fitcoach.schemas.subscriptions import (
    PaymentIntentSchema, ProcessorSubscriptionSchema, CancelProcessorSubscriptionSchema
)
from fitcoach.services import payments
from fitcoach.services.payments import PaymentService
from fitcoach.utils.decorators import role_required

payments_bp = Blueprint("payments", __name__)

intent_schema = PaymentIntentSchema()
processor_subscription_schema = ProcessorSubscriptionSchema()
cancel_processor_schema = CancelProcessorSubscriptionSchema()


def payment_service():
    return PaymentService(current_app.config)


@payments_bp.route("/customer", methods=["POST"])
@role_required("trainer", "nutritionist")
def create_customer(current_user):
    customer_id = payments.ensure_customer(db.session, current_user, payment_service())
    return jsonify({"success": True, "customer_id": customer_id}), 201


@payments_bp.route("/intent", methods=["POST"])
@role_required("trainer", "nutritionist")
def create_payment_intent(current_user):
    data = intent_schema.load(request.get_json() or {})
    intent = payments.create_plan_payment_intent(db.session, current_user, payment_service(), **data)
    return jsonify({"success": True, **intent}), 201


@payments_bp.route("/subscription", methods=["POST"])
@role_required("trainer", "nutritionist")
def create_processor_subscription(current_user):
    data = processor_subscription_schema.load(request.get_json() or {})
    remote = payments.attach_processor_subscription(db.session, current_user, payment_service(), **data)
    return jsonify({"success": True, "stripe_subscription_id": remote["id"], "status": remote["status"]}), 201


@payments_bp.route("/subscriptions", methods=["GET"])
@role_required("trainer", "nutritionist")
def list_subscriptions(current_user):
    rows = payments.list_processor_subscriptions(db.session, current_user, payment_service())
    return jsonify({"success": True, "subscriptions": rows, "total": len(rows)}), 200


@payments_bp.route("/cancel-subscription", methods=["POST"])
@role_required("trainer", "nutritionist")
def cancel_subscription(current_user):
    data = cancel_processor_schema.load(request.get_json() or {})
    subscription = payments.cancel_processor_subscription(
        db.session, current_user, payment_service(), data["subscription_id"], data["cancel_immediately"]
    )
    return jsonify({
        "success": True,
        "msg": "Subscription cancelled successfully",
        "subscription": subscription.to_dict(),
        "cancel_at_period_end": not data["cancel_immediately"],
    }), 200


@payments_bp.route("/webhook", methods=["POST"])
def stripe_webhook():
    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature", "")

    try:
        event = payment_service().construct_event(payload, sig_header)
    except ValueError:
        logging.error("Stripe webhook with invalid payload")
        raise ValidationError("Invalid payload", code="INVALID_WEBHOOK")
    except stripe.SignatureVerificationError:
        logging.error("Stripe webhook with invalid signature")
        raise ValidationError("Invalid signature", code="INVALID_WEBHOOK")

    result = payments.handle_webhook_event(db.session, event)
    return jsonify({"success": True, "received": True, **result}), 200
