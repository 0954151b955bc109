from flask import Blueprint, request, jsonify
from marshmallow import fields

from fitcoach.extensions import db
from fitcoach.schemas.base import BaseSchema, PaginationArgsSchema
from fitcoach.services import relationships, workouts
from fitcoach.utils.decorators import role_required

trainers_bp = Blueprint("trainers", __name__)


class RosterArgsSchema(PaginationArgsSchema):
    search = fields.String(load_default=None)


class InviteSchema(BaseSchema):
    email = fields.Email(required=True)


roster_args_schema = RosterArgsSchema()
invite_schema = InviteSchema()


@trainers_bp.route("/dashboard", methods=["GET"])
@role_required("trainer")
def dashboard(current_user):
    data = workouts.trainer_dashboard(db.session, current_user.trainer_profile)
    return jsonify({"success": True, "data": data}), 200


@trainers_bp.route("/athletes", methods=["GET"])
@role_required("trainer")
def list_athletes(current_user):
    args = roster_args_schema.load(request.args)
    result = relationships.list_trainer_athletes(
        db.session, current_user.trainer_profile, args["search"], args["page"], args["limit"]
    )
    return jsonify({"success": True, **result}), 200


@trainers_bp.route("/athletes/<int:athlete_id>", methods=["GET"])
@role_required("trainer")
def get_athlete(athlete_id, current_user):
    athlete = relationships.get_trainer_athlete(db.session, current_user.trainer_profile, athlete_id)
    return jsonify({"success": True, "athlete": athlete}), 200


@trainers_bp.route("/athletes/invite", methods=["POST"])
@role_required("trainer")
def invite_athlete(current_user):
    data = invite_schema.load(request.get_json() or {})
    athlete = relationships.invite_athlete(db.session, current_user.trainer_profile, data["email"])
    return jsonify({
        "success": True,
        "msg": "Athlete added successfully",
        "athlete": athlete.to_dict(),
    }), 201


@trainers_bp.route("/athletes/<int:athlete_id>", methods=["POST"])
@role_required("trainer")
def add_athlete(athlete_id, current_user):
    trainer = current_user.trainer_profile
    athlete = relationships.assign_athlete_to_trainer(db.session, athlete_id, trainer.id)
    return jsonify({
        "success": True,
        "msg": "Athlete added successfully",
        "athlete": athlete.to_dict(),
        "roster": {"count": trainer.athlete_count, "max_athletes": trainer.max_athletes},
    }), 201


@trainers_bp.route("/athletes/<int:athlete_id>", methods=["DELETE"])
@role_required("trainer")
def remove_athlete(athlete_id, current_user):
    relationships.release_athlete(db.session, current_user.trainer_profile, athlete_id)
    return jsonify({"success": True, "msg": "Athlete removed from your roster"}), 200
