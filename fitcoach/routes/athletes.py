from flask import Blueprint, request, jsonify

from fitcoach.extensions import db
from fitcoach.schemas.progress import ProgressRecordSchema, ProgressArgsSchema
from fitcoach.services import progress, workouts
from fitcoach.utils.decorators import role_required

athletes_bp = Blueprint("athletes", __name__)

progress_schema = ProgressRecordSchema()
progress_args_schema = ProgressArgsSchema()


@athletes_bp.route("/dashboard", methods=["GET"])
@role_required("athlete")
def dashboard(current_user):
    data = workouts.athlete_dashboard(db.session, current_user.athlete_profile)
    return jsonify({"success": True, "data": data}), 200


@athletes_bp.route("/progress", methods=["POST"])
@role_required("athlete")
def record_progress(current_user):
    data = progress_schema.load(request.get_json() or {})
    record = progress.record_progress(db.session, current_user.athlete_profile, **data)
    return jsonify({
        "success": True,
        "msg": "Progress recorded successfully",
        "record": record.to_dict(),
    }), 201


@athletes_bp.route("/progress", methods=["GET"])
@role_required("athlete")
def list_progress(current_user):
    args = progress_args_schema.load(request.args)
    result = progress.list_progress(db.session, current_user.athlete_profile, **args)
    return jsonify({"success": True, **result}), 200
