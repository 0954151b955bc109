from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat

PLAN_STATUSES = ("active", "paused", "completed")


class NutritionPlan(db.Model):
    __tablename__ = "nutrition_plans"

    id = db.Column(db.Integer, primary_key=True)
    nutritionist_id = db.Column(
        db.Integer, db.ForeignKey("nutritionist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    athlete_id = db.Column(db.Integer, db.ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    total_calories = db.Column(db.Integer)
    protein_grams = db.Column(db.Float)
    carbs_grams = db.Column(db.Float)
    fat_grams = db.Column(db.Float)
    fiber_grams = db.Column(db.Float)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date)
    status = db.Column(
        db.String(20),
        db.CheckConstraint("status IN ('active','paused','completed')"),
        default="active",
        nullable=False,
    )
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    nutritionist = db.relationship("NutritionistProfile", back_populates="plans")
    athlete = db.relationship("AthleteProfile", back_populates="nutrition_plans")
    meals = db.relationship(
        "Meal", back_populates="plan", order_by="Meal.order_index", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_nutrition_plans_athlete", "athlete_id"),
    )

    def to_dict(self, include_meals=False):
        data = {
            "id": self.id,
            "nutritionist_id": self.nutritionist_id,
            "nutritionist_name": self.nutritionist.user.full_name if self.nutritionist else None,
            "athlete_id": self.athlete_id,
            "athlete_name": self.athlete.user.full_name if self.athlete else None,
            "name": self.name,
            "description": self.description,
            "total_calories": self.total_calories,
            "protein_grams": self.protein_grams,
            "carbs_grams": self.carbs_grams,
            "fat_grams": self.fat_grams,
            "fiber_grams": self.fiber_grams,
            "start_date": isoformat(self.start_date),
            "end_date": isoformat(self.end_date),
            "status": self.status,
            "meal_count": len(self.meals),
            "created_at": isoformat(self.created_at),
        }
        if include_meals:
            data["meals"] = [meal.to_dict() for meal in self.meals]
        return data
