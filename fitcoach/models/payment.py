from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    subscription_id = db.Column(db.Integer, db.ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    currency = db.Column(db.String(3), default="BRL")
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('pending','completed','failed','refunded')"),
        default="pending",
    )
    provider = db.Column(db.String(50), default="stripe")
    provider_transaction_id = db.Column(db.String(255))
    failure_reason = db.Column(db.Text)
    processed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow)

    subscription = db.relationship("Subscription", back_populates="payments")

    __table_args__ = (
        db.Index("idx_payment_subscription_id", "subscription_id"),
        db.Index("idx_payment_status", "status"),
    )

    def __repr__(self):
        return f"<Payment {self.id}: {self.amount} {self.currency} - {self.status}>"

    def to_dict(self):
        return {
            "id": self.id,
            "subscription_id": self.subscription_id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "provider": self.provider,
            "provider_transaction_id": self.provider_transaction_id,
            "failure_reason": self.failure_reason,
            "processed_at": isoformat(self.processed_at),
        }
