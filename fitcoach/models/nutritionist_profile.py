from fitcoach.extensions import db
from fitcoach.models.trainer_profile import UNLIMITED
from fitcoach.utils.dates import isoformat


class NutritionistProfile(db.Model):
    __tablename__ = "nutritionist_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    certification = db.Column(db.String(255))
    specialization = db.Column(db.String(255))
    years_experience = db.Column(db.Integer)
    bio = db.Column(db.Text)

    subscription_plan = db.Column(db.String(50), default="basic")
    subscription_status = db.Column(
        db.String(20),
        db.CheckConstraint("subscription_status IN ('active','paused','cancelled','expired')"),
        default="active",
    )
    subscription_expires_at = db.Column(db.DateTime)
    max_clients = db.Column(db.Integer, default=15, nullable=False)
    client_count = db.Column(db.Integer, default=0, nullable=False)

    user = db.relationship("User", back_populates="nutritionist_profile")
    plans = db.relationship("NutritionPlan", back_populates="nutritionist", lazy="dynamic", cascade="all, delete-orphan")

    @property
    def is_unlimited(self):
        return self.max_clients == UNLIMITED

    @property
    def has_capacity(self):
        return self.is_unlimited or self.client_count < self.max_clients

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "certification": self.certification,
            "specialization": self.specialization,
            "years_experience": self.years_experience,
            "bio": self.bio,
            "subscription_plan": self.subscription_plan,
            "subscription_status": self.subscription_status,
            "subscription_expires_at": isoformat(self.subscription_expires_at),
            "max_clients": self.max_clients,
            "client_count": self.client_count,
            "is_unlimited": self.is_unlimited,
            "has_capacity": self.has_capacity,
        }
