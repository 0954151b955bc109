import pytest

from fitcoach.errors import ForbiddenError, NotFoundError, USER_NOT_FOUND
from fitcoach.models import Notification
from fitcoach.services import messages, notifications, relationships

from .conftest import RecordingMailer


def _seed(db, user, count=3, **options):
    return [
        notifications.create_notification(db, user.id, f"Title {i}", f"Body {i}", "reminder", **options)
        for i in range(count)
    ]


def _state(db, user):
    rows = db.query(Notification).filter_by(user_id=user.id).order_by(Notification.id).all()
    return [(n.id, n.is_read, n.read_at) for n in rows]


def test_create_for_unknown_user(db):
    with pytest.raises(NotFoundError) as exc:
        notifications.create_notification(db, 424242, "Hi", "There", "system")
    assert exc.value.code == USER_NOT_FOUND


def test_mark_all_read_is_idempotent(db, athlete):
    _seed(db, athlete)

    assert notifications.mark_all_read(db, athlete) == 3
    first = _state(db, athlete)
    assert notifications.mark_all_read(db, athlete) == 0
    assert _state(db, athlete) == first
    assert notifications.unread_count(db, athlete.id) == 0


def test_mark_all_read_only_touches_caller(db, athlete, trainer):
    _seed(db, athlete, 2)
    _seed(db, trainer, 2)

    notifications.mark_all_read(db, athlete)
    assert notifications.unread_count(db, trainer.id) == 2


def test_mark_read_keeps_first_read_time(db, athlete):
    notification = _seed(db, athlete, 1)[0]
    notifications.mark_read(db, notification.id, athlete)
    read_at = notification.read_at
    notifications.mark_read(db, notification.id, athlete)
    assert notification.read_at == read_at


def test_soft_deleted_rows_are_hidden(db, athlete, trainer):
    rows = _seed(db, athlete)
    notifications.soft_delete(db, rows[0].id, athlete)

    listing = notifications.list_notifications(db, athlete)
    assert rows[0].id not in [n["id"] for n in listing["notifications"]]
    assert listing["unread_count"] == 2
    assert notifications.notification_stats(db, athlete)["total"] == 2

    with pytest.raises(NotFoundError):
        notifications.soft_delete(db, rows[0].id, athlete)
    with pytest.raises(NotFoundError):
        notifications.mark_read(db, rows[1].id, trainer)


def test_listing_filters_and_newest_first(db, athlete):
    _seed(db, athlete, 2)
    notifications.create_notification(db, athlete.id, "Plan", "New plan", "nutrition", priority="high")

    listing = notifications.list_notifications(db, athlete, type="nutrition")
    assert [n["title"] for n in listing["notifications"]] == ["Plan"]

    everything = notifications.list_notifications(db, athlete, limit=2)
    assert everything["notifications"][0]["title"] == "Plan"
    assert everything["pagination"]["total"] == 3

    stats = notifications.notification_stats(db, athlete)
    assert stats["high_priority_unread"] == 1
    assert stats["by_type"] == {"reminder": 2, "nutrition": 1}


def test_message_between_athlete_and_own_trainer(db, trainer, athlete):
    relationships.assign_athlete_to_trainer(db, athlete.athlete_profile.id, trainer.trainer_profile.id)

    message = messages.send_message(db, athlete, trainer.id, "How many sets today?", subject="Question")

    inbox = messages.list_inbox(db, trainer)
    assert [m["id"] for m in inbox["messages"]] == [message.id]
    assert inbox["unread_count"] == 1
    assert db.query(Notification).filter_by(user_id=trainer.id, type="message").count() == 1

    messages.mark_message_read(db, message.id, trainer)
    assert messages.list_inbox(db, trainer, unread_only=True)["messages"] == []
    with pytest.raises(NotFoundError):
        messages.mark_message_read(db, message.id, athlete)


def test_message_to_unrelated_coach_is_forbidden(db, trainer, athlete):
    with pytest.raises(ForbiddenError):
        messages.send_message(db, athlete, trainer.id, "Hello")
    with pytest.raises(NotFoundError):
        messages.send_message(db, athlete, 424242, "Hello")


def test_broadcast_reaches_whole_roster_and_emails(db, trainer, make_user):
    roster = [make_user("athlete") for _ in range(2)]
    outsider = make_user("athlete")
    for athlete in roster:
        relationships.assign_athlete_to_trainer(db, athlete.athlete_profile.id, trainer.trainer_profile.id)
    mailer = RecordingMailer()

    result = notifications.broadcast(
        db, trainer, "Gym closed", "No sessions on Friday <3", send_email=True, mailer=mailer
    )

    assert result["notified"] == 2
    for athlete in roster:
        row = db.query(Notification).filter_by(user_id=athlete.id, title="Gym closed").one()
        assert row.sender_id == trainer.id
    assert db.query(Notification).filter_by(user_id=outsider.id, title="Gym closed").count() == 0
    name, args, _ = mailer.sent[0]
    assert name == "send_bulk"
    assert list(args[0]) == [a.email for a in roster]
    assert args[2] == "<p>No sessions on Friday &lt;3</p>"


def test_broadcast_refuses_foreign_recipients(db, trainer, athlete):
    with pytest.raises(ForbiddenError):
        notifications.broadcast(db, trainer, "Hello", "Hi", user_ids=[athlete.id])
    assert db.query(Notification).filter_by(user_id=athlete.id).count() == 0


def test_bulk_route_for_nutritionist_clients(db, client, auth_headers, nutritionist, athlete):
    relationships.assign_nutritionist_to_athlete(db, athlete.athlete_profile.id, nutritionist.id)

    response = client.post(
        "/api/notifications/bulk",
        json={"title": "New recipes", "message": "Check the plan", "type": "nutrition"},
        headers=auth_headers(nutritionist),
    )

    assert response.status_code == 201
    assert response.get_json()["notified"] == 1
    assert response.get_json()["emailed"] == 0
    assert db.query(Notification).filter_by(user_id=athlete.id, type="nutrition", title="New recipes").count() == 1
