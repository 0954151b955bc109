from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat

NOTIFICATION_TYPES = (
    "workout", "nutrition", "reminder", "approval", "system",
    "message", "subscription", "progress", "achievement",
)
PRIORITIES = ("low", "medium", "high", "urgent")


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))

    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.String(1000), nullable=False)
    type = db.Column(
        db.String(20),
        db.CheckConstraint(
            "type IN ('workout','nutrition','reminder','approval','system',"
            "'message','subscription','progress','achievement')"
        ),
        nullable=False,
    )
    priority = db.Column(
        db.String(10),
        db.CheckConstraint("priority IN ('low','medium','high','urgent')"),
        default="medium",
    )

    action_url = db.Column(db.String(255))
    action_data = db.Column(db.JSON)
    image_url = db.Column(db.String(255))

    is_read = db.Column(db.Boolean, default=False, nullable=False)
    read_at = db.Column(db.DateTime)
    # soft delete; rows stay for audit
    is_deleted = db.Column(db.Boolean, default=False, nullable=False)
    expires_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", foreign_keys=[user_id], back_populates="notifications")
    sender = db.relationship("User", foreign_keys=[sender_id])

    __table_args__ = (
        db.Index("idx_notifications_user", "user_id", "is_read"),
        db.Index("idx_notifications_type_priority", "type", "priority"),
    )

    def mark_as_read(self, now=None):
        if not self.is_read:
            self.is_read = True
            self.read_at = now or utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "priority": self.priority,
            "is_read": self.is_read,
            "read_at": isoformat(self.read_at),
            "action_url": self.action_url,
            "action_data": self.action_data or {},
            "image_url": self.image_url,
            "sender_id": self.sender_id,
            "sender_name": self.sender.full_name if self.sender else "System",
            "expires_at": isoformat(self.expires_at),
            "created_at": isoformat(self.created_at),
        }
