from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat


class FoodAnalysisHistory(db.Model):
    __tablename__ = "food_analysis_history"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    food_name = db.Column(db.String(200), nullable=False)
    confidence = db.Column(db.Float)
    calories = db.Column(db.Float)
    protein = db.Column(db.Float)
    carbohydrates = db.Column(db.Float)
    fat = db.Column(db.Float)
    fiber = db.Column(db.Float)
    serving_size = db.Column(db.String(100))
    ingredients = db.Column(db.JSON, default=list)
    tips = db.Column(db.JSON, default=list)
    image_path = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.Index("idx_food_analysis_user_date", "user_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "food_name": self.food_name,
            "confidence": self.confidence,
            "calories": self.calories,
            "protein": self.protein,
            "carbohydrates": self.carbohydrates,
            "fat": self.fat,
            "fiber": self.fiber,
            "serving_size": self.serving_size,
            "ingredients": self.ingredients or [],
            "tips": self.tips or [],
            "image_path": self.image_path,
            "created_at": isoformat(self.created_at),
        }
