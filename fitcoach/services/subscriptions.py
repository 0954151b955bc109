import logging

from flask import current_app
from sqlalchemy.orm import Session

from fitcoach.errors import NotFoundError, ValidationError, ForbiddenError
from fitcoach.models import Subscription, User, UNLIMITED
from fitcoach.services import notifications
from fitcoach.services.email import EmailService
from fitcoach.utils.dates import utcnow, add_months

CURRENCY = "BRL"
YEARLY_DISCOUNT = 0.8
BILLING_CYCLES = ("monthly", "yearly")

PLANS = {
    "trainer_basic": {
        "name": "Trainer Basic",
        "user_type": "trainer",
        "price": 49.90,
        "capacity": 10,
        "features": ["Up to 10 athletes", "Workout templates", "Progress tracking", "Email support"],
    },
    "trainer_pro": {
        "name": "Trainer Pro",
        "user_type": "trainer",
        "price": 89.90,
        "capacity": 25,
        "features": ["Up to 25 athletes", "Advanced analytics", "Custom branding", "Priority support"],
    },
    "trainer_enterprise": {
        "name": "Trainer Enterprise",
        "user_type": "trainer",
        "price": 149.90,
        "capacity": UNLIMITED,
        "features": ["Unlimited athletes", "Team management", "API access", "Dedicated support"],
    },
    "nutritionist_basic": {
        "name": "Nutritionist Basic",
        "user_type": "nutritionist",
        "price": 59.90,
        "capacity": 15,
        "features": ["Up to 15 clients", "Meal plans", "Food database", "Email support"],
    },
    "nutritionist_pro": {
        "name": "Nutritionist Pro",
        "user_type": "nutritionist",
        "price": 99.90,
        "capacity": 40,
        "features": ["Up to 40 clients", "Image food analysis", "Advanced reports", "Priority support"],
    },
}


def plan_price(plan, billing_cycle):
    if billing_cycle == "yearly":
        return round(plan["price"] * 12 * YEARLY_DISCOUNT, 2)
    return plan["price"]


def plan_expiry(start, billing_cycle):
    return add_months(start, 12 if billing_cycle == "yearly" else 1)


def list_plans(user_type=None):
    plans = []
    for plan_id, plan in PLANS.items():
        if user_type and plan["user_type"] != user_type:
            continue
        plans.append({
            "id": plan_id,
            "name": plan["name"],
            "user_type": plan["user_type"],
            "currency": CURRENCY,
            "monthly_price": plan["price"],
            "yearly_price": plan_price(plan, "yearly"),
            "capacity": plan["capacity"],
            "features": plan["features"],
        })
    return plans


def _coach_profile(user):
    """Trainer or nutritionist profile; athletes have no billable plan."""
    if user.role == "trainer":
        return user.trainer_profile
    if user.role == "nutritionist":
        return user.nutritionist_profile
    raise ForbiddenError("Only trainers and nutritionists have subscriptions")


def _apply_capacity(profile, user, capacity):
    if user.role == "trainer":
        profile.max_athletes = capacity
    else:
        profile.max_clients = capacity


def _sync_profile(user, status, expires_at=None):
    profile = _coach_profile(user)
    profile.subscription_status = status
    if expires_at is not None:
        profile.subscription_expires_at = expires_at


def latest_subscription(db: Session, user):
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user.id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )


def current_subscription(db: Session, user, now=None):
    """Most recent subscription; lapsed active rows report as expired without a write."""
    _coach_profile(user)
    subscription = latest_subscription(db, user)
    if subscription is None:
        return None
    return subscription.to_dict(now)


def subscribe(db: Session, user, plan_id, billing_cycle="monthly", payment_method=None, mailer=None):
    profile = _coach_profile(user)
    plan = PLANS.get(plan_id)
    if plan is None:
        raise ValidationError(errors={"plan_id": ["Unknown plan"]})
    if plan["user_type"] != user.role:
        raise ValidationError(errors={"plan_id": [f"Plan is not available for {user.role}s"]})
    if billing_cycle not in BILLING_CYCLES:
        raise ValidationError(errors={"billing_cycle": [f"Must be one of: {', '.join(BILLING_CYCLES)}"]})

    now = utcnow()
    try:
        superseded = (
            db.query(Subscription)
            .filter(Subscription.user_id == user.id, Subscription.status.in_(("active", "paused")))
            .all()
        )
        for old in superseded:
            old.cancel_subscription(reason=f"Replaced by {plan_id}")

        subscription = Subscription(
            user_id=user.id,
            plan_id=plan_id,
            plan_name=plan["name"],
            plan_price=plan_price(plan, billing_cycle),
            currency=CURRENCY,
            billing_cycle=billing_cycle,
            status="active",
            started_at=now,
            expires_at=plan_expiry(now, billing_cycle),
            auto_renew=True,
            payment_method=payment_method or "pending",
            created_at=now,
        )
        db.add(subscription)

        profile.subscription_plan = plan_id
        _apply_capacity(profile, user, plan["capacity"])
        _sync_profile(user, "active", subscription.expires_at)

        db.flush()
        notification = notifications.build_notification(
            db,
            user.id,
            "Subscription Activated",
            f"Your {plan['name']} plan is active until {subscription.expires_at.date().isoformat()}.",
            "subscription",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info(f"User {user.id} subscribed to {plan_id} ({billing_cycle})")
    notifications.push(notification)
    (mailer or EmailService.from_current_app()).send_subscription_event(
        user.email, user.full_name, "active", plan_label(subscription)
    )
    return subscription


def _payment_processor(processor):
    if processor is not None:
        return processor
    from fitcoach.services.payments import PaymentService

    return PaymentService(current_app.config)


def close_subscription(db: Session, user, subscription, reason=None, immediate=False, mailer=None, processor=None):
    """Cancel ``subscription`` locally and, when it is billed through Stripe, at the processor first.

    A processor failure raises ExternalServiceError and leaves the local row untouched.
    """
    if subscription.stripe_subscription_id:
        _payment_processor(processor).cancel_subscription(
            subscription.stripe_subscription_id, at_period_end=not immediate
        )

    subscription.cancel_subscription(reason=reason, immediate=immediate)
    _sync_profile(user, "cancelled")
    db.commit()

    logging.info(f"User {user.id} cancelled subscription {subscription.id}")
    (mailer or EmailService.from_current_app()).send_subscription_event(
        user.email, user.full_name, "cancelled", plan_label(subscription)
    )
    return subscription


def cancel(db: Session, user, reason=None, mailer=None, processor=None):
    _coach_profile(user)
    subscription = (
        db.query(Subscription)
        .filter(Subscription.user_id == user.id, Subscription.status == "active")
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )
    if subscription is None:
        raise NotFoundError("No active subscription found")
    return close_subscription(db, user, subscription, reason=reason, mailer=mailer, processor=processor)


def history(db: Session, user, page=1, limit=10):
    _coach_profile(user)
    pagination = (
        db.query(Subscription)
        .filter(Subscription.user_id == user.id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .paginate(page=page, per_page=limit, error_out=False)
    )
    return {
        "subscriptions": [s.to_dict() for s in pagination.items],
        "pagination": {"page": page, "limit": limit, "total": pagination.total, "pages": pagination.pages},
    }


def expire_subscriptions(db: Session, now=None):
    """Periodic sweep: lapsed active subscriptions become expired."""
    now = now or utcnow()
    lapsed = (
        db.query(Subscription)
        .filter(Subscription.status == "active", Subscription.expires_at <= now)
        .all()
    )
    for subscription in lapsed:
        subscription.status = "expired"
        subscription.auto_renew = False
        user = subscription.user
        if latest_subscription(db, user) is subscription:
            _sync_profile(user, "expired")
    db.commit()
    if lapsed:
        logging.info(f"Expired {len(lapsed)} subscriptions")
    return len(lapsed)


def set_status_from_processor(db: Session, subscription, status):
    subscription.status = status
    if status == "cancelled":
        subscription.auto_renew = False
        subscription.canceled_at = subscription.canceled_at or utcnow()
    user = db.get(User, subscription.user_id)
    if latest_subscription(db, user) is subscription:
        _sync_profile(user, status)


def plan_label(subscription):
    cycle = "year" if subscription.billing_cycle == "yearly" else "month"
    return f"{subscription.plan_name} - R$ {subscription.plan_price:.2f}/{cycle}"
