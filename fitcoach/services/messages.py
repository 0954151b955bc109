import logging

from sqlalchemy.orm import Session

from fitcoach.errors import ForbiddenError, NotFoundError, ValidationError
from fitcoach.models import User, Message, MESSAGE_TYPES
from fitcoach.services import notifications


def _athlete_and_coach(sender, recipient):
    if sender.is_athlete:
        return sender.athlete_profile, recipient
    if recipient.is_athlete:
        return recipient.athlete_profile, sender
    return None, None


def are_connected(sender, recipient):
    """Messages only flow between an athlete and their own trainer or nutritionist."""
    athlete, coach = _athlete_and_coach(sender, recipient)
    if athlete is None or coach.is_athlete:
        return False
    if coach.is_trainer:
        return athlete.trainer_id == coach.trainer_profile.id
    return athlete.nutritionist_id == coach.id


def send_message(db: Session, sender, recipient_id, body, subject=None, message_type="text",
                 related_record_id=None, related_record_type=None):
    if not body or not body.strip():
        raise ValidationError(errors={"body": ["Message body is required"]})
    if message_type not in MESSAGE_TYPES:
        raise ValidationError(errors={"message_type": [f"Must be one of: {', '.join(MESSAGE_TYPES)}"]})

    recipient = db.get(User, recipient_id)
    if recipient is None or not recipient.is_active:
        raise NotFoundError("Recipient not found")
    if not are_connected(sender, recipient):
        raise ForbiddenError("You can only message your own trainer, nutritionist or athletes")

    message = Message(
        sender_id=sender.id,
        recipient_id=recipient.id,
        subject=subject,
        body=body.strip(),
        message_type=message_type,
        related_record_id=related_record_id,
        related_record_type=related_record_type,
    )
    db.add(message)
    try:
        db.flush()
        notification = notifications.build_notification(
            db,
            recipient.id,
            f"New message from {sender.full_name}",
            subject or body.strip()[:120],
            "message",
            sender_id=sender.id,
            action_data={"message_id": message.id},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info(f"User {sender.id} sent message {message.id} to user {recipient.id}")
    notifications.push(notification)
    return message


def list_inbox(db: Session, user, unread_only=False, page=1, limit=20):
    query = db.query(Message).filter(Message.recipient_id == user.id)
    if unread_only:
        query = query.filter(Message.is_read.is_(False))
    pagination = query.order_by(Message.sent_at.desc(), Message.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return {
        "messages": [m.to_dict() for m in pagination.items],
        "unread_count": db.query(Message).filter(Message.recipient_id == user.id, Message.is_read.is_(False)).count(),
        "pagination": {"page": page, "limit": limit, "total": pagination.total, "pages": pagination.pages},
    }


def list_sent(db: Session, user, page=1, limit=20):
    pagination = (
        db.query(Message)
        .filter(Message.sender_id == user.id)
        .order_by(Message.sent_at.desc(), Message.id.desc())
        .paginate(page=page, per_page=limit, error_out=False)
    )
    return {
        "messages": [m.to_dict() for m in pagination.items],
        "pagination": {"page": page, "limit": limit, "total": pagination.total, "pages": pagination.pages},
    }


def mark_message_read(db: Session, message_id, user):
    message = db.query(Message).filter(Message.id == message_id, Message.recipient_id == user.id).first()
    if message is None:
        raise NotFoundError("Message not found")
    message.is_read = True
    db.commit()
    return message
