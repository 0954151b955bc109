from fitcoach.extensions import db
from fitcoach.utils.dates import utcnow, isoformat

# per-serving nutrient columns summed by nutrition totals
NUTRIENT_COLUMNS = {
    "calories": "calories_per_serving",
    "protein": "protein_per_serving",
    "carbs": "carbs_per_serving",
    "fat": "fat_per_serving",
    "fiber": "fiber_per_serving",
}


class Food(db.Model):
    __tablename__ = "foods"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    brand = db.Column(db.String(150))
    barcode = db.Column(db.String(50))
    serving_size = db.Column(db.String(50))
    serving_unit = db.Column(db.String(30))
    calories_per_serving = db.Column(db.Float, default=0)
    protein_per_serving = db.Column(db.Float, default=0)
    carbs_per_serving = db.Column(db.Float, default=0)
    fat_per_serving = db.Column(db.Float, default=0)
    fiber_per_serving = db.Column(db.Float, default=0)
    sugar_per_serving = db.Column(db.Float, default=0)
    sodium_per_serving = db.Column(db.Float, default=0)
    category = db.Column(db.String(50))
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.Index("idx_foods_name", "name"),
    )

    def nutrients_for(self, quantity):
        return {key: quantity * (getattr(self, column) or 0) for key, column in NUTRIENT_COLUMNS.items()}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "barcode": self.barcode,
            "serving_size": self.serving_size,
            "serving_unit": self.serving_unit,
            "calories_per_serving": self.calories_per_serving,
            "protein_per_serving": self.protein_per_serving,
            "carbs_per_serving": self.carbs_per_serving,
            "fat_per_serving": self.fat_per_serving,
            "fiber_per_serving": self.fiber_per_serving,
            "sugar_per_serving": self.sugar_per_serving,
            "sodium_per_serving": self.sodium_per_serving,
            "category": self.category,
            "is_verified": self.is_verified,
            "created_at": isoformat(self.created_at),
        }
