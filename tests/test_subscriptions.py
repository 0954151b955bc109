from datetime import datetime, timedelta

import pytest

from fitcoach.errors import ForbiddenError, NotFoundError, ValidationError
from fitcoach.models import Subscription, UNLIMITED
from fitcoach.services import subscriptions
from fitcoach.utils.dates import add_months, utcnow

from .conftest import RecordingMailer


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2026, 1, 31, 10), 1) == datetime(2026, 2, 28, 10)
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2026, 3, 15), 12) == datetime(2027, 3, 15)


def test_catalog_filters_by_user_type():
    ids = [p["id"] for p in subscriptions.list_plans("nutritionist")]
    assert ids == ["nutritionist_basic", "nutritionist_pro"]
    assert len(subscriptions.list_plans()) == 5


def test_subscribe_updates_capacity_and_price(db, trainer):
    mailer = RecordingMailer()
    subscription = subscriptions.subscribe(db, trainer, "trainer_pro", "yearly", mailer=mailer)

    assert subscription.plan_price == pytest.approx(863.04)
    assert subscription.currency == "BRL"
    assert subscription.expires_at == add_months(subscription.started_at, 12)
    profile = trainer.trainer_profile
    assert profile.max_athletes == 25
    assert profile.subscription_plan == "trainer_pro"
    assert profile.subscription_status == "active"
    assert mailer.sent[0][0] == "send_subscription_event"


def test_enterprise_plan_is_unlimited(db, trainer):
    subscriptions.subscribe(db, trainer, "trainer_enterprise", mailer=RecordingMailer())
    assert trainer.trainer_profile.max_athletes == UNLIMITED
    trainer.trainer_profile.athlete_count = 500
    profile = trainer.trainer_profile.to_dict()
    assert profile["is_unlimited"] is True
    assert profile["has_capacity"] is True


def test_resubscribing_cancels_previous(db, nutritionist):
    first = subscriptions.subscribe(db, nutritionist, "nutritionist_basic", mailer=RecordingMailer())
    second = subscriptions.subscribe(db, nutritionist, "nutritionist_pro", mailer=RecordingMailer())

    assert first.status == "cancelled"
    assert second.status == "active"
    assert nutritionist.nutritionist_profile.max_clients == 40
    assert subscriptions.current_subscription(db, nutritionist)["id"] == second.id


def test_plan_must_match_role(db, trainer, athlete):
    with pytest.raises(ValidationError):
        subscriptions.subscribe(db, trainer, "nutritionist_basic")
    with pytest.raises(ValidationError):
        subscriptions.subscribe(db, trainer, "gold")
    with pytest.raises(ForbiddenError):
        subscriptions.subscribe(db, athlete, "trainer_basic")
    assert db.query(Subscription).count() == 0


def test_cancel_keeps_access_until_expiry(db, trainer):
    subscription = subscriptions.subscribe(db, trainer, "trainer_basic", mailer=RecordingMailer())
    expires_at = subscription.expires_at

    subscriptions.cancel(db, trainer, "Too expensive", mailer=RecordingMailer())

    assert subscription.status == "cancelled"
    assert subscription.auto_renew is False
    assert subscription.cancellation_reason == "Too expensive"
    assert subscription.expires_at == expires_at
    assert trainer.trainer_profile.subscription_status == "cancelled"
    with pytest.raises(NotFoundError):
        subscriptions.cancel(db, trainer, mailer=RecordingMailer())


def test_lapsed_subscription_reads_expired_without_write(db, trainer):
    subscription = subscriptions.subscribe(db, trainer, "trainer_basic", mailer=RecordingMailer())
    subscription.expires_at = utcnow() - timedelta(days=1)
    db.commit()

    current = subscriptions.current_subscription(db, trainer)
    assert current["status"] == "expired"
    assert current["is_expired"] is True
    assert current["days_until_expiry"] == 0
    db.refresh(subscription)
    assert subscription.status == "active"


def test_expiry_sweep(db, trainer, nutritionist):
    lapsed = subscriptions.subscribe(db, trainer, "trainer_basic", mailer=RecordingMailer())
    fresh = subscriptions.subscribe(db, nutritionist, "nutritionist_basic", mailer=RecordingMailer())
    lapsed.expires_at = utcnow() - timedelta(hours=1)
    db.commit()

    assert subscriptions.expire_subscriptions(db) == 1
    assert lapsed.status == "expired"
    assert fresh.status == "active"
    assert trainer.trainer_profile.subscription_status == "expired"
    assert subscriptions.expire_subscriptions(db) == 0


def test_history_is_paginated(db, trainer):
    for plan_id in ("trainer_basic", "trainer_pro", "trainer_basic"):
        subscriptions.subscribe(db, trainer, plan_id, mailer=RecordingMailer())

    page = subscriptions.history(db, trainer, page=1, limit=2)
    assert page["pagination"]["total"] == 3
    assert len(page["subscriptions"]) == 2
