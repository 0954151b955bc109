from fitcoach.extensions import db
from fitcoach.utils.dates import isoformat

UNLIMITED = -1


class TrainerProfile(db.Model):
    __tablename__ = "trainer_profiles"

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
    max_athletes = db.Column(db.Integer, default=10, nullable=False)
    # roster size, kept in step with athlete_profiles.trainer_id by the relationship service
    athlete_count = db.Column(db.Integer, default=0, nullable=False)

    user = db.relationship("User", back_populates="trainer_profile")
    athletes = db.relationship("AthleteProfile", back_populates="trainer", lazy="dynamic")
    templates = db.relationship("WorkoutTemplate", back_populates="trainer", lazy="dynamic", cascade="all, delete-orphan")
    assigned_workouts = db.relationship("AssignedWorkout", back_populates="trainer", lazy="dynamic", cascade="all, delete-orphan")

    @property
    def is_unlimited(self):
        return self.max_athletes == UNLIMITED

    @property
    def has_capacity(self):
        return self.is_unlimited or self.athlete_count < self.max_athletes

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
            "max_athletes": self.max_athletes,
            "athlete_count": self.athlete_count,
            "is_unlimited": self.is_unlimited,
            "has_capacity": self.has_capacity,
        }
