from marshmallow import fields, validate

from fitcoach.models import MEAL_TYPES, PLAN_STATUSES
from fitcoach.schemas.base import BaseSchema


class MealFoodSchema(BaseSchema):
    food_id = fields.Integer(required=True)
    quantity = fields.Float(required=True)
    unit = fields.String(required=True, validate=validate.Length(min=1, max=30))


class MealSchema(BaseSchema):
    meal_type = fields.String(required=True)
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(load_default=None)
    target_calories = fields.Float(load_default=None)
    # emptiness is reported by the plan service with the meal index
    foods = fields.List(fields.Nested(MealFoodSchema), load_default=list)


class NutritionPlanSchema(BaseSchema):
    athlete_id = fields.Integer(required=True)
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(load_default=None)
    total_calories = fields.Float(load_default=None)
    protein_grams = fields.Float(load_default=None)
    carbs_grams = fields.Float(load_default=None)
    fat_grams = fields.Float(load_default=None)
    fiber_grams = fields.Float(load_default=None)
    start_date = fields.Date(required=True)
    end_date = fields.Date(load_default=None)
    meals = fields.List(fields.Nested(MealSchema), load_default=list)


class PlanStatusSchema(BaseSchema):
    status = fields.String(required=True, validate=validate.OneOf(PLAN_STATUSES))


class PlanArgsSchema(BaseSchema):
    status = fields.String(load_default=None, validate=validate.OneOf(PLAN_STATUSES))


class TotalsArgsSchema(BaseSchema):
    type = fields.String(required=True, validate=validate.OneOf(("meal", "plan")))
    id = fields.Integer(required=True)


class FoodLogSchema(BaseSchema):
    food_id = fields.Integer(required=True)
    quantity = fields.Float(required=True)
    unit = fields.String(required=True, validate=validate.Length(min=1, max=30))
    meal_type = fields.String(required=True, validate=validate.OneOf(MEAL_TYPES))
    logged_at = fields.DateTime(load_default=None)
    meal_id = fields.Integer(load_default=None)


class FoodLogArgsSchema(BaseSchema):
    date = fields.Date(load_default=None)


class FoodSearchArgsSchema(BaseSchema):
    q = fields.String(required=True)
    limit = fields.Integer(load_default=20, validate=validate.Range(min=1, max=100))


class FoodSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    brand = fields.String(load_default=None)
    barcode = fields.String(load_default=None)
    serving_size = fields.String(load_default=None)
    serving_unit = fields.String(load_default=None)
    calories_per_serving = fields.Float(load_default=0, validate=validate.Range(min=0))
    protein_per_serving = fields.Float(load_default=0, validate=validate.Range(min=0))
    carbs_per_serving = fields.Float(load_default=0, validate=validate.Range(min=0))
    fat_per_serving = fields.Float(load_default=0, validate=validate.Range(min=0))
    fiber_per_serving = fields.Float(load_default=0, validate=validate.Range(min=0))
    sugar_per_serving = fields.Float(load_default=0, validate=validate.Range(min=0))
    sodium_per_serving = fields.Float(load_default=0, validate=validate.Range(min=0))
    category = fields.String(load_default=None)
