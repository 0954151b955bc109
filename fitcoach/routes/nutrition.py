from flask import Blueprint, request, jsonify
from marshmallow import fields

from fitcoach.errors import ValidationError
from fitcoach.extensions import db
from fitcoach.schemas.base import BaseSchema
from fitcoach.schemas.nutrition import (
    NutritionPlanSchema, PlanStatusSchema, PlanArgsSchema, TotalsArgsSchema, FoodLogSchema,
    FoodLogArgsSchema, FoodSearchArgsSchema, FoodSchema,
)
from fitcoach.services import nutrition, relationships
from fitcoach.utils.decorators import role_required

nutrition_bp = Blueprint("nutrition", __name__)


class ClientSchema(BaseSchema):
    athlete_id = fields.Integer(required=True)


plan_schema = NutritionPlanSchema()
plan_status_schema = PlanStatusSchema()
plan_args_schema = PlanArgsSchema()
totals_args_schema = TotalsArgsSchema()
food_log_schema = FoodLogSchema()
food_log_args_schema = FoodLogArgsSchema()
food_search_args_schema = FoodSearchArgsSchema()
food_schema = FoodSchema()
client_schema = ClientSchema()


# Plans

@nutrition_bp.route("/plans", methods=["POST"])
@role_required("nutritionist")
def create_plan(current_user):
    data = plan_schema.load(request.get_json() or {})
    athlete_id = data.pop("athlete_id")
    plan = nutrition.create_plan(db.session, current_user.nutritionist_profile, athlete_id, data)
    return jsonify({
        "success": True,
        "msg": "Nutrition plan created successfully",
        "plan": plan.to_dict(include_meals=True),
    }), 201


@nutrition_bp.route("/plans", methods=["GET"])
@role_required("nutritionist", "athlete")
def list_plans(current_user):
    args = plan_args_schema.load(request.args)
    plans = nutrition.list_plans(db.session, current_user, args["status"])
    return jsonify({"success": True, "plans": [p.to_dict() for p in plans]}), 200


@nutrition_bp.route("/plans/<int:plan_id>", methods=["GET"])
@role_required("nutritionist", "athlete")
def get_plan(plan_id, current_user):
    plan = nutrition.get_plan(db.session, current_user, plan_id)
    return jsonify({"success": True, "plan": plan.to_dict(include_meals=True)}), 200


@nutrition_bp.route("/plans/<int:plan_id>/status", methods=["PUT"])
@role_required("nutritionist")
def update_plan_status(plan_id, current_user):
    data = plan_status_schema.load(request.get_json() or {})
    plan = nutrition.update_plan_status(db.session, current_user.nutritionist_profile, plan_id, data["status"])
    return jsonify({"success": True, "plan": plan.to_dict()}), 200


@nutrition_bp.route("/totals", methods=["GET"])
@role_required("nutritionist", "athlete")
def calculate_totals(current_user):
    args = totals_args_schema.load(request.args)
    totals = nutrition.calculate_totals(db.session, args["type"], args["id"], user=current_user)
    return jsonify({"success": True, "totals": totals}), 200


@nutrition_bp.route("/clients", methods=["POST"])
@role_required("nutritionist")
def add_client(current_user):
    data = client_schema.load(request.get_json() or {})
    athlete = relationships.assign_nutritionist_to_athlete(db.session, data["athlete_id"], current_user.id)
    return jsonify({"success": True, "msg": "Client added successfully", "athlete": athlete.to_dict()}), 201


# Food log

@nutrition_bp.route("/food-logs", methods=["POST"])
@role_required("athlete")
def log_food(current_user):
    data = food_log_schema.load(request.get_json() or {})
    entry = nutrition.log_food_intake(db.session, current_user.athlete_profile, **data)
    return jsonify({"success": True, "msg": "Food logged successfully", "food_log": entry.to_dict()}), 201


@nutrition_bp.route("/food-logs", methods=["GET"])
@role_required("athlete")
def list_food_logs(current_user):
    args = food_log_args_schema.load(request.args)
    result = nutrition.list_food_logs(db.session, current_user.athlete_profile, args["date"])
    return jsonify({"success": True, **result}), 200


# Food database

@nutrition_bp.route("/foods/search", methods=["GET"])
@role_required()
def search_foods(current_user):
    args = food_search_args_schema.load(request.args)
    foods = nutrition.search_foods(db.session, args["q"], args["limit"])
    return jsonify({"success": True, "foods": [f.to_dict() for f in foods]}), 200


@nutrition_bp.route("/foods", methods=["POST"])
@role_required()
def create_food(current_user):
    data = food_schema.load(request.get_json() or {})
    food = nutrition.create_food(db.session, current_user, data)
    return jsonify({"success": True, "food": food.to_dict()}), 201


# Image analysis

@nutrition_bp.route("/analyze-image", methods=["POST"])
@role_required()
def analyze_image(current_user):
    file = request.files.get("image")
    if file is None or not file.filename:
        raise ValidationError(errors={"image": ["No image provided"]})
    image_bytes = file.read()
    if not image_bytes:
        raise ValidationError(errors={"image": ["Image is empty"]})

    result = nutrition.analyze_food_image(db.session, current_user, image_bytes, file.filename)
    return jsonify({"success": True, "analysis": result}), 200


@nutrition_bp.route("/analysis-history", methods=["GET"])
@role_required()
def analysis_history(current_user):
    entries = nutrition.list_analysis_history(db.session, current_user)
    return jsonify({"success": True, "history": [e.to_dict() for e in entries]}), 200
