from fitcoach.extensions import db

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")


class Meal(db.Model):
    __tablename__ = "meals"

    id = db.Column(db.Integer, primary_key=True)
    nutrition_plan_id = db.Column(
        db.Integer, db.ForeignKey("nutrition_plans.id", ondelete="CASCADE"), nullable=False
    )
    meal_type = db.Column(
        db.String(20),
        db.CheckConstraint("meal_type IN ('breakfast','lunch','dinner','snack')"),
        nullable=False,
    )
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    target_calories = db.Column(db.Float)
    order_index = db.Column(db.Integer, nullable=False)

    plan = db.relationship("NutritionPlan", back_populates="meals")
    foods = db.relationship("MealFood", back_populates="meal", order_by="MealFood.id", cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint("nutrition_plan_id", "order_index", name="uq_meal_order"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "meal_type": self.meal_type,
            "name": self.name,
            "description": self.description,
            "target_calories": self.target_calories,
            "order_index": self.order_index,
            "foods": [item.to_dict() for item in self.foods],
        }


class MealFood(db.Model):
    __tablename__ = "meal_foods"

    id = db.Column(db.Integer, primary_key=True)
    meal_id = db.Column(db.Integer, db.ForeignKey("meals.id", ondelete="CASCADE"), nullable=False)
    food_id = db.Column(db.Integer, db.ForeignKey("foods.id", ondelete="CASCADE"), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(30), nullable=False)

    meal = db.relationship("Meal", back_populates="foods")
    food = db.relationship("Food")

    def to_dict(self):
        return {
            "id": self.id,
            "food_id": self.food_id,
            "food_name": self.food.name if self.food else None,
            "quantity": self.quantity,
            "unit": self.unit,
        }
