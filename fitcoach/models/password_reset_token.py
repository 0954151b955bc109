from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow


class PasswordResetToken(db.Model):
    __tablename__ = "password_reset_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = db.Column(db.String(64), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    used_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User")

    __table_args__ = (
        db.Index("idx_password_reset_tokens_expires", "expires_at"),
    )

    def is_valid(self, now=None):
        now = now or utcnow()
        return self.used_at is None and self.expires_at > now
