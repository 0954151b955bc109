from sqlalchemy import event, select, update

from fitcoach.extensions import db
from fitcoach.models.nutritionist_profile import NutritionistProfile
from fitcoach.models.trainer_profile import TrainerProfile
from fitcoach.utils.dates import isoformat


class AthleteProfile(db.Model):
    __tablename__ = "athlete_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    trainer_id = db.Column(db.Integer, db.ForeignKey("trainer_profiles.id", ondelete="SET NULL"))
    # the nutritionist's users.id, not the profile id
    nutritionist_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))

    birth_date = db.Column(db.Date)
    gender = db.Column(db.String(10), db.CheckConstraint("gender IN ('M','F','Other')"))
    height = db.Column(db.Float)
    weight = db.Column(db.Float)
    fitness_level = db.Column(
        db.String(20),
        db.CheckConstraint("fitness_level IN ('beginner','intermediate','advanced')"),
    )
    goals = db.Column(db.Text)
    medical_conditions = db.Column(db.Text)
    emergency_contact_name = db.Column(db.String(150))
    emergency_contact_phone = db.Column(db.String(30))

    user = db.relationship("User", foreign_keys=[user_id], back_populates="athlete_profile")
    trainer = db.relationship("TrainerProfile", back_populates="athletes")
    nutritionist = db.relationship("User", foreign_keys=[nutritionist_id])
    assigned_workouts = db.relationship("AssignedWorkout", back_populates="athlete", lazy="dynamic", cascade="all, delete-orphan")
    progress_records = db.relationship("ProgressRecord", back_populates="athlete", lazy="dynamic", cascade="all, delete-orphan")
    food_logs = db.relationship("FoodLog", back_populates="athlete", lazy="dynamic", cascade="all, delete-orphan")
    nutrition_plans = db.relationship("NutritionPlan", back_populates="athlete", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_athletes_trainer", "trainer_id"),
        db.Index("idx_athletes_nutritionist", "nutritionist_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "trainer_id": self.trainer_id,
            "nutritionist_id": self.nutritionist_id,
            "birth_date": isoformat(self.birth_date),
            "gender": self.gender,
            "height": self.height,
            "weight": self.weight,
            "fitness_level": self.fitness_level,
            "goals": self.goals,
            "medical_conditions": self.medical_conditions,
            "emergency_contact_name": self.emergency_contact_name,
            "emergency_contact_phone": self.emergency_contact_phone,
        }


@event.listens_for(AthleteProfile, "before_delete")
def release_coach_slots(mapper, connection, target):
    """Give back the roster seats a deleted athlete held."""
    athletes = AthleteProfile.__table__
    trainers = TrainerProfile.__table__
    nutritionists = NutritionistProfile.__table__

    trainer_id = select(athletes.c.trainer_id).where(athletes.c.id == target.id).scalar_subquery()
    connection.execute(
        update(trainers)
        .where(trainers.c.id == trainer_id, trainers.c.athlete_count > 0)
        .values(athlete_count=trainers.c.athlete_count - 1)
    )

    nutritionist_user_id = select(athletes.c.nutritionist_id).where(athletes.c.id == target.id).scalar_subquery()
    connection.execute(
        update(nutritionists)
        .where(nutritionists.c.user_id == nutritionist_user_id, nutritionists.c.client_count > 0)
        .values(client_count=nutritionists.c.client_count - 1)
    )
