from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat

MESSAGE_TYPES = ("text", "workout_feedback", "nutrition_note", "system")


class Message(db.Model):
    __tablename__ = "messages"

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject = db.Column(db.String(200))
    body = db.Column(db.Text, nullable=False)
    message_type = db.Column(
        db.String(20),
        db.CheckConstraint("message_type IN ('text','workout_feedback','nutrition_note','system')"),
        default="text",
    )
    related_record_id = db.Column(db.Integer)
    related_record_type = db.Column(db.String(50))
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    sent_at = db.Column(db.DateTime, default=utcnow)

    sender = db.relationship("User", foreign_keys=[sender_id], back_populates="sent_messages")
    recipient = db.relationship("User", foreign_keys=[recipient_id], back_populates="received_messages")

    __table_args__ = (
        db.Index("idx_messages_recipient", "recipient_id", "is_read"),
        db.Index("idx_messages_sender", "sender_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "sender_name": self.sender.full_name if self.sender else None,
            "recipient_id": self.recipient_id,
            "subject": self.subject,
            "body": self.body,
            "message_type": self.message_type,
            "related_record_id": self.related_record_id,
            "related_record_type": self.related_record_type,
            "is_read": self.is_read,
            "sent_at": isoformat(self.sent_at),
        }
