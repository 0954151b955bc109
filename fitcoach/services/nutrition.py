import logging
import os
from datetime import datetime, time, timedelta

from flask import current_app
from sqlalchemy import false, or_
from sqlalchemy.orm import Session

from fitcoach.errors import NotFoundError, ValidationError
from fitcoach.models import (
    AthleteProfile, Food, FoodAnalysisHistory, FoodLog, Meal, MealFood, NutritionPlan, MEAL_TYPES, PLAN_STATUSES
)
from fitcoach.models.food import NUTRIENT_COLUMNS
from fitcoach.services import notifications, relationships
from fitcoach.services.food_analysis import FoodAnalyzer
from fitcoach.utils.dates import utcnow

MIN_PLAN_CALORIES = 800
MAX_PLAN_CALORIES = 5000
MIN_QUANTITY = 0.1


def sum_nutrients(items):
    """Sum quantity x per-serving values over (quantity, food) pairs.

    Quantities are taken as serving multiples; no unit conversion happens.
    """
    totals = {key: 0.0 for key in NUTRIENT_COLUMNS}
    for quantity, food in items:
        for key, value in food.nutrients_for(quantity).items():
            totals[key] += value
    return {key: round(value, 2) for key, value in totals.items()}


def _validate_plan_data(data):
    errors = {}
    calories = data.get("total_calories")
    if calories is not None and not MIN_PLAN_CALORIES <= calories <= MAX_PLAN_CALORIES:
        errors["total_calories"] = [f"Must be between {MIN_PLAN_CALORIES} and {MAX_PLAN_CALORIES}"]
    for field in ("protein_grams", "carbs_grams", "fat_grams", "fiber_grams"):
        if data.get(field) is not None and data[field] < 0:
            errors[field] = ["Must be zero or greater"]

    meals = data.get("meals") or []
    if not meals:
        errors["meals"] = ["At least one meal is required"]
    for index, meal in enumerate(meals):
        if meal.get("meal_type") not in MEAL_TYPES:
            errors[f"meals[{index}].meal_type"] = [f"Must be one of: {', '.join(MEAL_TYPES)}"]
        if not meal.get("foods"):
            errors[f"meals[{index}].foods"] = ["Each meal needs at least one food"]
        for food_index, item in enumerate(meal.get("foods") or []):
            if item.get("quantity") is None or item["quantity"] < MIN_QUANTITY:
                errors[f"meals[{index}].foods[{food_index}].quantity"] = [f"Must be at least {MIN_QUANTITY}"]
    if errors:
        raise ValidationError(errors=errors)


def create_plan(db: Session, nutritionist, athlete_id, data):
    _validate_plan_data(data)

    athlete = db.get(AthleteProfile, athlete_id)
    if athlete is None:
        raise NotFoundError("Athlete not found")

    food_ids = {item["food_id"] for meal in data["meals"] for item in meal["foods"]}
    known = {row.id for row in db.query(Food.id).filter(Food.id.in_(food_ids))}
    missing = sorted(food_ids - known)
    if missing:
        raise ValidationError(errors={"meals": [f"Unknown food ids: {missing}"]})

    plan = NutritionPlan(
        nutritionist_id=nutritionist.id,
        athlete_id=athlete.id,
        name=data["name"],
        description=data.get("description"),
        total_calories=data.get("total_calories"),
        protein_grams=data.get("protein_grams"),
        carbs_grams=data.get("carbs_grams"),
        fat_grams=data.get("fat_grams"),
        fiber_grams=data.get("fiber_grams"),
        start_date=data["start_date"],
        end_date=data.get("end_date"),
        status="active",
    )
    for position, meal_data in enumerate(data["meals"], start=1):
        meal = Meal(
            meal_type=meal_data["meal_type"],
            name=meal_data["name"],
            description=meal_data.get("description"),
            target_calories=meal_data.get("target_calories"),
            order_index=position,
        )
        for item in meal_data["foods"]:
            meal.foods.append(MealFood(food_id=item["food_id"], quantity=item["quantity"], unit=item["unit"]))
        plan.meals.append(meal)

    db.add(plan)
    pending = []
    try:
        if athlete.nutritionist_id != nutritionist.user_id:
            pending.append(relationships.link_nutritionist(db, athlete, nutritionist.user_id))
        db.flush()
        pending.append(
            notifications.build_notification(
                db,
                athlete.user_id,
                "New Nutrition Plan",
                f"{nutritionist.user.full_name} created the plan \"{plan.name}\" for you.",
                "nutrition",
                sender_id=nutritionist.user_id,
                action_data={"nutrition_plan_id": plan.id},
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logging.info(f"Nutritionist {nutritionist.id} created plan {plan.id} for athlete {athlete.id}")
    notifications.push(*pending)
    return plan


def _plans_for(db: Session, user):
    query = db.query(NutritionPlan)
    if user.is_nutritionist:
        return query.filter(NutritionPlan.nutritionist_id == user.nutritionist_profile.id)
    if user.is_athlete:
        return query.filter(NutritionPlan.athlete_id == user.athlete_profile.id)
    return query.filter(false())


def list_plans(db: Session, user, status=None):
    query = _plans_for(db, user)
    if status:
        query = query.filter(NutritionPlan.status == status)
    return query.order_by(NutritionPlan.created_at.desc(), NutritionPlan.id.desc()).all()


def get_plan(db: Session, user, plan_id):
    plan = _plans_for(db, user).filter(NutritionPlan.id == plan_id).first()
    if plan is None:
        raise NotFoundError("Nutrition plan not found")
    return plan


def update_plan_status(db: Session, nutritionist, plan_id, status):
    if status not in PLAN_STATUSES:
        raise ValidationError(errors={"status": [f"Must be one of: {', '.join(PLAN_STATUSES)}"]})
    plan = db.get(NutritionPlan, plan_id)
    if plan is None or plan.nutritionist_id != nutritionist.id:
        raise NotFoundError("Nutrition plan not found")
    plan.status = status
    db.commit()
    return plan


def calculate_totals(db: Session, target_type, target_id, user=None):
    if target_type == "meal":
        meal = db.get(Meal, target_id)
        if meal is None:
            raise NotFoundError("Meal not found")
        plan_id = meal.nutrition_plan_id
        items = [(mf.quantity, mf.food) for mf in meal.foods]
    elif target_type == "plan":
        plan = db.get(NutritionPlan, target_id)
        if plan is None:
            raise NotFoundError("Nutrition plan not found")
        plan_id = plan.id
        items = [(mf.quantity, mf.food) for meal in plan.meals for mf in meal.foods]
    else:
        raise ValidationError(errors={"type": ["Must be 'meal' or 'plan'"]})

    if user is not None:
        # ownership doubles as existence
        get_plan(db, user, plan_id)
    return sum_nutrients(items)


# Food intake

def log_food_intake(db: Session, athlete, food_id, quantity, unit, meal_type, logged_at=None, meal_id=None):
    if quantity is None or quantity < MIN_QUANTITY:
        raise ValidationError(errors={"quantity": [f"Must be at least {MIN_QUANTITY}"]})
    if meal_type not in MEAL_TYPES:
        raise ValidationError(errors={"meal_type": [f"Must be one of: {', '.join(MEAL_TYPES)}"]})
    if db.get(Food, food_id) is None:
        raise NotFoundError("Food not found")
    if meal_id is not None and db.get(Meal, meal_id) is None:
        raise NotFoundError("Meal not found")

    entry = FoodLog(
        athlete_id=athlete.id,
        food_id=food_id,
        meal_id=meal_id,
        quantity=quantity,
        unit=unit,
        meal_type=meal_type,
        logged_at=logged_at or utcnow(),
    )
    db.add(entry)
    db.commit()
    return entry


def list_food_logs(db: Session, athlete, day=None):
    day = day or utcnow().date()
    start = datetime.combine(day, time.min)
    logs = (
        db.query(FoodLog)
        .filter(
            FoodLog.athlete_id == athlete.id,
            FoodLog.logged_at >= start,
            FoodLog.logged_at < start + timedelta(days=1),
        )
        .order_by(FoodLog.logged_at.asc())
        .all()
    )
    return {
        "date": day.isoformat(),
        "logs": [entry.to_dict() for entry in logs],
        "totals": sum_nutrients((entry.quantity, entry.food) for entry in logs),
    }


# Food database

def search_foods(db: Session, query, limit=20):
    term = (query or "").strip()
    if len(term) < 2:
        raise ValidationError(errors={"q": ["Search query must be at least 2 characters"]})
    pattern = f"%{term}%"
    return (
        db.query(Food)
        .filter(or_(Food.name.ilike(pattern), Food.brand.ilike(pattern)))
        .order_by(Food.is_verified.desc(), Food.name.asc())
        .limit(limit)
        .all()
    )


def create_food(db: Session, user, data):
    food = Food(created_by=user.id, is_verified=False, **data)
    db.add(food)
    db.commit()
    return food


# Image analysis

def analyze_food_image(db: Session, user, image_bytes, filename=None, analyzer=None):
    analyzer = analyzer or FoodAnalyzer(current_app.config)
    result = analyzer.analyze(image_bytes)

    try:
        entry = FoodAnalysisHistory(
            user_id=user.id,
            food_name=result["food_name"],
            confidence=result.get("confidence"),
            calories=result.get("calories"),
            protein=result.get("protein"),
            carbohydrates=result.get("carbohydrates"),
            fat=result.get("fat"),
            fiber=result.get("fiber"),
            serving_size=result.get("serving_size"),
            ingredients=result.get("ingredients") or [],
            tips=result.get("tips") or [],
            image_path=os.path.basename(filename) if filename else None,
        )
        db.add(entry)
        db.commit()
        result["history_id"] = entry.id
    except Exception as e:
        db.rollback()
        logging.error(f"Could not store food analysis for user {user.id}: {e}")
    return result


def list_analysis_history(db: Session, user, limit=20):
    return (
        db.query(FoodAnalysisHistory)
        .filter(FoodAnalysisHistory.user_id == user.id)
        .order_by(FoodAnalysisHistory.created_at.desc(), FoodAnalysisHistory.id.desc())
        .limit(limit)
        .all()
    )
