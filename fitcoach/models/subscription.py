from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Plan snapshot at purchase time
    plan_id = db.Column(db.String(50), nullable=False)
    plan_name = db.Column(db.String(100), nullable=False)
    plan_price = db.Column(db.Float, nullable=False)
    currency = db.Column(db.String(3), default="BRL")
    billing_cycle = db.Column(
        db.String(20),
        db.CheckConstraint("billing_cycle IN ('monthly','yearly')"),
        nullable=False,
    )

    # Status and lifecycle
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('active','paused','cancelled','expired')"),
        default="active",
        nullable=False,
    )
    started_at = db.Column(db.DateTime, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    auto_renew = db.Column(db.Boolean, default=True)
    canceled_at = db.Column(db.DateTime)
    cancellation_reason = db.Column(db.String(255))

    # Billing
    payment_method = db.Column(db.String(50), default="pending")
    stripe_subscription_id = db.Column(db.String(255), unique=True)
    stripe_customer_id = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="subscriptions")
    payments = db.relationship("Payment", back_populates="subscription", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_subscription_user_id", "user_id"),
        db.Index("idx_subscription_status", "status"),
        db.Index("idx_subscription_expires_at", "expires_at"),
    )

    def is_expired_at(self, now=None):
        now = now or utcnow()
        return self.expires_at is not None and self.expires_at <= now

    def effective_status(self, now=None):
        """Status as callers should see it; a lapsed active row reads as expired."""
        if self.status == "active" and self.is_expired_at(now):
            return "expired"
        return self.status

    def days_until_expiry(self, now=None):
        now = now or utcnow()
        if not self.expires_at:
            return 0
        return max(0, (self.expires_at - now).days)

    def cancel_subscription(self, reason=None, immediate=False):
        """Cancel subscription; access is kept until expiry unless immediate."""
        now = utcnow()
        self.status = "cancelled"
        self.cancellation_reason = reason
        self.canceled_at = now
        self.auto_renew = False
        if immediate:
            self.expires_at = now

    def to_dict(self, now=None):
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "plan_price": self.plan_price,
            "currency": self.currency,
            "billing_cycle": self.billing_cycle,
            "status": self.effective_status(now),
            "started_at": isoformat(self.started_at),
            "expires_at": isoformat(self.expires_at),
            "auto_renew": self.auto_renew,
            "payment_method": self.payment_method,
            "canceled_at": isoformat(self.canceled_at),
            "days_until_expiry": self.days_until_expiry(now),
            "is_expired": self.is_expired_at(now),
            "created_at": isoformat(self.created_at),
        }
