"""
Payment processor integration.

Thin wrapper over the Stripe API plus the webhook event handler that mirrors
processor state onto local Subscription and Payment rows.
"""

import logging
from datetime import datetime, timezone

import stripe
from sqlalchemy.orm import Session

from fitcoach.errors import ExternalServiceError, NotFoundError, ConflictError, INVALID_TRANSITION
from fitcoach.models import Payment, Subscription, User
from fitcoach.services import subscriptions
from fitcoach.services.email import EmailService
from fitcoach.utils.dates import utcnow

# Stripe subscription status -> local subscription status
STATUS_MAP = {
    "active": "active",
    "trialing": "active",
    "past_due": "paused",
    "unpaid": "paused",
    "incomplete": "paused",
    "canceled": "cancelled",
    "incomplete_expired": "cancelled",
}


class PaymentService:
    def __init__(self, config):
        stripe.api_key = config.get("STRIPE_SECRET_KEY")
        self.webhook_secret = config.get("STRIPE_WEBHOOK_SECRET")
        self.default_trial_days = config.get("STRIPE_DEFAULT_TRIAL_DAYS", 14)

    def create_customer(self, email, name, metadata=None):
        try:
            customer = stripe.Customer.create(email=email, name=name, metadata=metadata or {})
        except stripe.StripeError as e:
            logging.error(f"Stripe customer creation failed for {email}: {e}")
            raise ExternalServiceError("Could not create payment customer")
        return customer

    def create_subscription(self, customer_id, price_id, trial_days=None):
        trial_days = self.default_trial_days if trial_days is None else trial_days
        params = {
            "customer": customer_id,
            "items": [{"price": price_id}],
            "payment_behavior": "default_incomplete",
            "expand": ["latest_invoice.payment_intent"],
        }
        if trial_days:
            params["trial_period_days"] = trial_days
        try:
            return stripe.Subscription.create(**params)
        except stripe.StripeError as e:
            logging.error(f"Stripe subscription creation failed for {customer_id}: {e}")
            raise ExternalServiceError("Could not create processor subscription")

    def create_payment_intent(self, amount, currency="BRL", customer_id=None, metadata=None):
        """Amount is in major units; Stripe wants the smallest currency unit."""
        params = {
            "amount": int(round(amount * 100)),
            "currency": currency.lower(),
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata or {},
        }
        if customer_id:
            params["customer"] = customer_id
        try:
            return stripe.PaymentIntent.create(**params)
        except stripe.StripeError as e:
            logging.error(f"Stripe payment intent failed: {e}")
            raise ExternalServiceError("Could not create payment intent")

    def cancel_subscription(self, stripe_subscription_id, at_period_end=True):
        try:
            if at_period_end:
                return stripe.Subscription.modify(stripe_subscription_id, cancel_at_period_end=True)
            return stripe.Subscription.cancel(stripe_subscription_id)
        except stripe.StripeError as e:
            logging.error(f"Stripe cancellation failed for {stripe_subscription_id}: {e}")
            raise ExternalServiceError("Could not cancel processor subscription")

    def get_subscription(self, stripe_subscription_id):
        try:
            return stripe.Subscription.retrieve(stripe_subscription_id)
        except stripe.StripeError as e:
            logging.error(f"Stripe lookup failed for {stripe_subscription_id}: {e}")
            raise ExternalServiceError("Could not fetch processor subscription")

    def construct_event(self, payload, sig_header):
        """Verify the webhook signature; raises ValueError or SignatureVerificationError."""
        if not self.webhook_secret:
            raise RuntimeError("Stripe webhook secret not configured")
        return stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=self.webhook_secret)


def _field(obj, key):
    if obj is not None and key in obj:
        return obj[key]
    return None


def ensure_customer(db: Session, user, service):
    if user.stripe_customer_id:
        return user.stripe_customer_id
    customer = service.create_customer(user.email, user.full_name, metadata={"user_id": str(user.id)})
    user.stripe_customer_id = customer["id"]
    db.commit()
    return user.stripe_customer_id


def attach_processor_subscription(db: Session, user, service, price_id, trial_days=None):
    """Create the processor-side subscription for the user's current plan."""
    subscription = subscriptions.latest_subscription(db, user)
    if subscription is None or subscription.status not in ("active", "paused"):
        raise NotFoundError("No active subscription found")

    customer_id = ensure_customer(db, user, service)
    remote = service.create_subscription(customer_id, price_id, trial_days)
    subscription.stripe_subscription_id = remote["id"]
    subscription.stripe_customer_id = customer_id
    subscription.payment_method = "stripe"
    db.commit()
    logging.info(f"Subscription {subscription.id} linked to processor subscription {remote['id']}")
    return remote


def create_plan_payment_intent(db: Session, user, service, plan_id, billing_cycle="monthly"):
    plan = subscriptions.PLANS.get(plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    customer_id = ensure_customer(db, user, service)
    amount = subscriptions.plan_price(plan, billing_cycle)
    intent = service.create_payment_intent(
        amount,
        subscriptions.CURRENCY,
        customer_id,
        metadata={"user_id": str(user.id), "plan_id": plan_id, "billing_cycle": billing_cycle},
    )
    return {
        "client_secret": intent["client_secret"],
        "payment_intent_id": intent["id"],
        "amount": amount,
        "currency": subscriptions.CURRENCY,
    }


def _timestamp(value):
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


def list_processor_subscriptions(db: Session, user, service):
    """Local subscriptions, newest first; live ones carry the processor's billing period."""
    rows = (
        db.query(Subscription)
        .filter(Subscription.user_id == user.id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .all()
    )
    result = []
    for subscription in rows:
        data = subscription.to_dict()
        data["stripe_subscription_id"] = subscription.stripe_subscription_id
        if subscription.stripe_subscription_id and subscription.status in ("active", "paused"):
            try:
                remote = service.get_subscription(subscription.stripe_subscription_id)
            except ExternalServiceError:
                logging.warning(f"Listing subscription {subscription.id} without processor details")
            else:
                data["stripe_details"] = {
                    "status": _field(remote, "status"),
                    "current_period_start": _timestamp(_field(remote, "current_period_start")),
                    "current_period_end": _timestamp(_field(remote, "current_period_end")),
                    "cancel_at_period_end": bool(_field(remote, "cancel_at_period_end")),
                }
        result.append(data)
    return result


def cancel_processor_subscription(db: Session, user, service, stripe_subscription_id, cancel_immediately=False):
    subscription = (
        db.query(Subscription)
        .filter(Subscription.stripe_subscription_id == stripe_subscription_id, Subscription.user_id == user.id)
        .first()
    )
    if subscription is None:
        raise NotFoundError("Subscription not found")
    if subscription.status not in ("active", "paused"):
        raise ConflictError(f"Subscription is already {subscription.status}", code=INVALID_TRANSITION)
    return subscriptions.close_subscription(
        db, user, subscription, reason="Cancelled by user", immediate=cancel_immediately, processor=service
    )


def _find_subscription(db: Session, stripe_subscription_id=None, customer_id=None):
    if stripe_subscription_id:
        subscription = (
            db.query(Subscription)
            .filter(Subscription.stripe_subscription_id == stripe_subscription_id)
            .first()
        )
        if subscription is not None:
            return subscription
    if customer_id:
        user = db.query(User).filter(User.stripe_customer_id == customer_id).first()
        if user is not None:
            return subscriptions.latest_subscription(db, user)
    return None


def _record_payment(db: Session, subscription, invoice, status, failure_reason=None):
    cents = _field(invoice, "amount_paid") if status == "completed" else _field(invoice, "amount_due")
    currency = _field(invoice, "currency")
    payment = Payment(
        subscription_id=subscription.id,
        amount=(cents or 0) / 100,
        currency=currency.upper() if currency else subscription.currency,
        status=status,
        provider="stripe",
        provider_transaction_id=_field(invoice, "id"),
        failure_reason=failure_reason,
        processed_at=utcnow(),
    )
    db.add(payment)
    return payment


def handle_webhook_event(db: Session, event, mailer=None):
    event_type = event["type"]
    obj = event["data"]["object"]

    if event_type.startswith("customer.subscription."):
        subscription = _find_subscription(db, _field(obj, "id"), _field(obj, "customer"))
    elif event_type.startswith("invoice."):
        subscription = _find_subscription(db, _field(obj, "subscription"), _field(obj, "customer"))
    else:
        logging.info(f"Ignoring Stripe event {event_type}")
        return {"handled": False, "event_type": event_type}

    if subscription is None:
        logging.info(f"Stripe event {event_type} matched no subscription")
        return {"handled": False, "event_type": event_type}

    try:
        if event_type in ("customer.subscription.created", "customer.subscription.updated"):
            status = STATUS_MAP.get(_field(obj, "status"))
            # a cancellation scheduled for period end still reports "active" upstream
            if status == "active" and subscription.status == "cancelled" and _field(obj, "cancel_at_period_end"):
                status = None
            if status is not None:
                subscriptions.set_status_from_processor(db, subscription, status)
            if _field(obj, "cancel_at_period_end"):
                subscription.auto_renew = False
        elif event_type == "customer.subscription.deleted":
            subscriptions.set_status_from_processor(db, subscription, "cancelled")
        elif event_type == "invoice.payment_succeeded":
            _record_payment(db, subscription, obj, "completed")
            subscriptions.set_status_from_processor(db, subscription, "active")
        elif event_type == "invoice.payment_failed":
            _record_payment(db, subscription, obj, "failed", failure_reason="Payment failed")
            subscriptions.set_status_from_processor(db, subscription, "paused")
        else:
            logging.info(f"Ignoring Stripe event {event_type}")
            return {"handled": False, "event_type": event_type}
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info(f"Stripe event {event_type} applied to subscription {subscription.id}: {subscription.status}")
    if event_type == "invoice.payment_failed":
        user = subscription.user
        (mailer or EmailService.from_current_app()).send_subscription_event(
            user.email, user.full_name, "paused", subscriptions.plan_label(subscription)
        )
    return {"handled": True, "event_type": event_type, "subscription_id": subscription.id, "status": subscription.status}
