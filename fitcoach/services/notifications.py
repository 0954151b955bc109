import logging
from html import escape

from sqlalchemy import func
from sqlalchemy.orm import Session

from fitcoach.errors import NotFoundError, ValidationError, ForbiddenError, USER_NOT_FOUND
from fitcoach.models import User, AthleteProfile, Notification, NOTIFICATION_TYPES, PRIORITIES
from fitcoach.services.email import EmailService
from fitcoach.sockets import emit_to_user
from fitcoach.utils.dates import utcnow


def build_notification(db: Session, user_id, title, message, type, priority="medium",
                       sender_id=None, action_url=None, action_data=None, expires_at=None, image_url=None):
    """Stage a notification on the session without committing.

    Used by other services so the notification lands in their transaction.
    """
    if db.get(User, user_id) is None:
        raise NotFoundError("User not found", code=USER_NOT_FOUND)
    if type not in NOTIFICATION_TYPES:
        raise ValidationError(errors={"type": [f"Must be one of: {', '.join(NOTIFICATION_TYPES)}"]})
    if priority not in PRIORITIES:
        raise ValidationError(errors={"priority": [f"Must be one of: {', '.join(PRIORITIES)}"]})

    notification = Notification(
        user_id=user_id,
        title=title[:200],
        message=message[:1000],
        type=type,
        priority=priority,
        sender_id=sender_id,
        action_url=action_url,
        action_data=action_data,
        image_url=image_url,
        expires_at=expires_at,
    )
    db.add(notification)
    return notification


def push(*notifications):
    for notification in notifications:
        if notification is not None:
            emit_to_user(notification.user_id, "notification", notification.to_dict())


def create_notification(db: Session, user_id, title, message, type, **options):
    notification = build_notification(db, user_id, title, message, type, **options)
    db.commit()
    logging.info(f"Notification {notification.id} created for user {user_id}")
    push(notification)
    return notification


def _visible(db, user_id):
    return db.query(Notification).filter(Notification.user_id == user_id, Notification.is_deleted.is_(False))


def unread_count(db, user_id):
    return _visible(db, user_id).filter(Notification.is_read.is_(False)).count()


def list_notifications(db: Session, user, type=None, unread_only=False, page=1, limit=20):
    query = _visible(db, user.id)
    if type:
        query = query.filter(Notification.type == type)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    pagination = query.order_by(Notification.created_at.desc(), Notification.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return {
        "notifications": [n.to_dict() for n in pagination.items],
        "unread_count": unread_count(db, user.id),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": pagination.total,
            "pages": pagination.pages,
        },
    }


def mark_read(db: Session, notification_id, user):
    notification = _visible(db, user.id).filter(Notification.id == notification_id).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    notification.mark_as_read()
    db.commit()
    return notification


def mark_all_read(db: Session, user):
    """Returns how many notifications changed state; a second call returns 0."""
    now = utcnow()
    updated = (
        _visible(db, user.id)
        .filter(Notification.is_read.is_(False))
        .update({Notification.is_read: True, Notification.read_at: now}, synchronize_session=False)
    )
    db.commit()
    return updated


def soft_delete(db: Session, notification_id, user):
    notification = _visible(db, user.id).filter(Notification.id == notification_id).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    notification.is_deleted = True
    db.commit()


def notification_stats(db: Session, user):
    base = _visible(db, user.id)
    by_type = (
        db.query(Notification.type, func.count(Notification.id))
        .filter(Notification.user_id == user.id, Notification.is_deleted.is_(False))
        .group_by(Notification.type)
        .all()
    )
    return {
        "total": base.count(),
        "unread": base.filter(Notification.is_read.is_(False)).count(),
        "high_priority_unread": base.filter(
            Notification.is_read.is_(False), Notification.priority.in_(("high", "urgent"))
        ).count(),
        "by_type": {kind: count for kind, count in by_type},
    }


def coach_audience(db: Session, coach):
    """User ids of the athletes a trainer or nutritionist looks after."""
    query = db.query(AthleteProfile.user_id)
    if coach.is_trainer:
        query = query.filter(AthleteProfile.trainer_id == coach.trainer_profile.id)
    elif coach.is_nutritionist:
        query = query.filter(AthleteProfile.nutritionist_id == coach.id)
    else:
        return set()
    return {user_id for (user_id,) in query}


def broadcast(db: Session, sender, title, message, type="system", user_ids=None, priority="medium",
              send_email=False, mailer=None):
    """Notify several of the sender's athletes at once, all of them when ``user_ids`` is None.

    With ``send_email`` the same text also goes out as one bulk email.
    """
    audience = coach_audience(db, sender)
    targets = audience if user_ids is None else set(user_ids)
    outside = targets - audience
    if outside:
        raise ForbiddenError(f"Not your athletes: {sorted(outside)}")
    if not targets:
        raise ValidationError(errors={"user_ids": ["No recipients"]})

    try:
        rows = [
            build_notification(db, user_id, title, message, type, priority=priority, sender_id=sender.id)
            for user_id in sorted(targets)
        ]
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info(f"User {sender.id} broadcast '{title}' to {len(rows)} users")
    push(*rows)

    emailed = 0
    if send_email:
        emails = [
            email for (email,) in
            db.query(User.email).filter(User.id.in_(targets), User.is_active.is_(True)).order_by(User.id)
        ]
        emailed = (mailer or EmailService.from_current_app()).send_bulk(
            emails, title, f"<p>{escape(message)}</p>"
        )
    return {"notified": len(rows), "emailed": emailed}
