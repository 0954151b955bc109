from flask import Blueprint, request, jsonify

from fitcoach.extensions import db
from fitcoach.schemas.workouts import (
    ExerciseSchema, ExerciseArgsSchema, TemplateSchema, TemplateArgsSchema, AssignWorkoutSchema,
    AssignedArgsSchema, CompleteWorkoutSchema, FeedbackSchema,
)
from fitcoach.services import workouts
from fitcoach.utils.decorators import role_required

workouts_bp = Blueprint("workouts", __name__)

exercise_schema = ExerciseSchema()
exercise_args_schema = ExerciseArgsSchema()
template_schema = TemplateSchema()
template_args_schema = TemplateArgsSchema()
assign_schema = AssignWorkoutSchema()
assigned_args_schema = AssignedArgsSchema()
complete_schema = CompleteWorkoutSchema()
feedback_schema = FeedbackSchema()


# Exercise library

@workouts_bp.route("/exercises", methods=["GET"])
@role_required()
def list_exercises(current_user):
    args = exercise_args_schema.load(request.args)
    trainer = current_user.trainer_profile if current_user.is_trainer else None
    exercises = workouts.list_exercises(db.session, trainer, **args)
    return jsonify({"success": True, "exercises": [e.to_dict() for e in exercises]}), 200


@workouts_bp.route("/exercises", methods=["POST"])
@role_required("trainer")
def create_exercise(current_user):
    data = exercise_schema.load(request.get_json() or {})
    exercise = workouts.create_exercise(db.session, current_user.trainer_profile, data)
    return jsonify({"success": True, "exercise": exercise.to_dict()}), 201


# Templates

@workouts_bp.route("/templates", methods=["GET"])
@role_required()
def list_templates(current_user):
    args = template_args_schema.load(request.args)
    templates = workouts.list_templates(db.session, current_user, **args)
    return jsonify({"success": True, "templates": [t.to_dict() for t in templates]}), 200


@workouts_bp.route("/templates", methods=["POST"])
@role_required("trainer")
def create_template(current_user):
    data = template_schema.load(request.get_json() or {})
    template = workouts.create_template(db.session, current_user.trainer_profile, data)
    return jsonify({
        "success": True,
        "msg": "Workout template created successfully",
        "template": template.to_dict(include_exercises=True),
    }), 201


@workouts_bp.route("/templates/<int:template_id>", methods=["GET"])
@role_required()
def get_template(template_id, current_user):
    template = workouts.get_template(db.session, current_user, template_id)
    return jsonify({"success": True, "template": template.to_dict(include_exercises=True)}), 200


# Assignments

@workouts_bp.route("/assign", methods=["POST"])
@role_required("trainer")
def assign_workout(current_user):
    data = assign_schema.load(request.get_json() or {})
    assignment = workouts.assign_workout(db.session, current_user.trainer_profile, **data)
    return jsonify({
        "success": True,
        "msg": "Workout assigned successfully",
        "assigned_workout": assignment.to_dict(),
    }), 201


@workouts_bp.route("/assigned", methods=["GET"])
@role_required("trainer", "athlete")
def list_assigned(current_user):
    args = assigned_args_schema.load(request.args)
    assignments = workouts.list_assigned(db.session, current_user, **args)
    return jsonify({"success": True, "assigned_workouts": [a.to_dict() for a in assignments]}), 200


@workouts_bp.route("/assigned/<int:assignment_id>/start", methods=["POST"])
@role_required("athlete")
def start_workout(assignment_id, current_user):
    assignment = workouts.start_workout(db.session, current_user.athlete_profile, assignment_id)
    return jsonify({"success": True, "assigned_workout": assignment.to_dict()}), 200


@workouts_bp.route("/assigned/<int:assignment_id>/skip", methods=["POST"])
@role_required("athlete")
def skip_workout(assignment_id, current_user):
    assignment = workouts.skip_workout(db.session, current_user.athlete_profile, assignment_id)
    return jsonify({"success": True, "assigned_workout": assignment.to_dict()}), 200


@workouts_bp.route("/assigned/<int:assignment_id>/complete", methods=["POST"])
@role_required("athlete")
def complete_workout(assignment_id, current_user):
    data = complete_schema.load(request.get_json() or {})
    assignment = workouts.complete_workout(db.session, current_user.athlete_profile, assignment_id, **data)
    return jsonify({
        "success": True,
        "msg": "Workout completed successfully",
        "assigned_workout": assignment.to_dict(include_logs=True),
    }), 200


@workouts_bp.route("/assigned/<int:assignment_id>/feedback", methods=["POST"])
@role_required("trainer")
def add_feedback(assignment_id, current_user):
    data = feedback_schema.load(request.get_json() or {})
    assignment = workouts.add_feedback(db.session, current_user.trainer_profile, assignment_id, data["feedback"])
    return jsonify({"success": True, "assigned_workout": assignment.to_dict()}), 200
