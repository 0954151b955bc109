from flask import Blueprint, request, jsonify

from fitcoach.extensions import db
from fitcoach.schemas.analytics import DashboardArgsSchema, WorkoutStatsArgsSchema, AthletePerformanceArgsSchema
from fitcoach.services import analytics
from fitcoach.utils.decorators import role_required

analytics_bp = Blueprint("analytics", __name__)

dashboard_args_schema = DashboardArgsSchema()
workout_args_schema = WorkoutStatsArgsSchema()
performance_args_schema = AthletePerformanceArgsSchema()


@analytics_bp.route("/dashboard", methods=["GET"])
@role_required("trainer", "nutritionist")
def dashboard(current_user):
    args = dashboard_args_schema.load(request.args)
    return jsonify({"success": True, **analytics.coach_dashboard(db.session, current_user, **args)}), 200


@analytics_bp.route("/workouts", methods=["GET"])
@role_required("trainer")
def workout_stats(current_user):
    args = workout_args_schema.load(request.args)
    return jsonify({"success": True, **analytics.workout_stats(db.session, current_user.trainer_profile, **args)}), 200


@analytics_bp.route("/athletes", methods=["GET"])
@role_required("trainer")
def athlete_performance(current_user):
    args = performance_args_schema.load(request.args)
    stats = analytics.athlete_performance(db.session, current_user.trainer_profile, **args)
    return jsonify({"success": True, **stats}), 200
