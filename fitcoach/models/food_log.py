from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat


class FoodLog(db.Model):
    __tablename__ = "food_logs"

    id = db.Column(db.Integer, primary_key=True)
    athlete_id = db.Column(db.Integer, db.ForeignKey("athlete_profiles.id", ondelete="CASCADE"), nullable=False)
    meal_id = db.Column(db.Integer, db.ForeignKey("meals.id", ondelete="SET NULL"))
    food_id = db.Column(db.Integer, db.ForeignKey("foods.id"), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(30), nullable=False)
    meal_type = db.Column(
        db.String(20),
        db.CheckConstraint("meal_type IN ('breakfast','lunch','dinner','snack')"),
        nullable=False,
    )
    logged_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    athlete = db.relationship("AthleteProfile", back_populates="food_logs")
    food = db.relationship("Food")

    __table_args__ = (
        db.Index("idx_food_logs_athlete_date", "athlete_id", "logged_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "athlete_id": self.athlete_id,
            "meal_id": self.meal_id,
            "food_id": self.food_id,
            "food_name": self.food.name if self.food else None,
            "quantity": self.quantity,
            "unit": self.unit,
            "meal_type": self.meal_type,
            "logged_at": isoformat(self.logged_at),
        }
