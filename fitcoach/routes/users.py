import os

from flask import Blueprint, request, jsonify, current_app, send_from_directory
from werkzeug.utils import secure_filename

from fitcoach.errors import ValidationError
from fitcoach.extensions import db
from fitcoach.schemas.auth import ChangePasswordSchema, ProfileUpdateSchema
from fitcoach.services import identity
from fitcoach.utils.dates import utcnow
from fitcoach.utils.decorators import role_required

users_bp = Blueprint("users", __name__)

profile_update_schema = ProfileUpdateSchema()
change_password_schema = ChangePasswordSchema()


def allowed_image(filename):
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return extension in current_app.config["ALLOWED_IMAGE_EXTENSIONS"]


@users_bp.route("/profile", methods=["GET"])
@role_required()
def get_profile(current_user):
    return jsonify({"success": True, "user": identity.get_profile(current_user)}), 200


@users_bp.route("/profile", methods=["PUT"])
@role_required()
def update_profile(current_user):
    data = profile_update_schema.load(request.get_json() or {})
    user = identity.update_profile(db.session, current_user, data)
    return jsonify({
        "success": True,
        "msg": "Profile updated successfully",
        "user": user.to_dict(include_profile=True),
    }), 200


@users_bp.route("/avatar", methods=["POST"])
@role_required()
def upload_avatar(current_user):
    file = request.files.get("avatar")
    if file is None or not file.filename:
        raise ValidationError(errors={"avatar": ["No file provided"]})
    if not allowed_image(file.filename):
        raise ValidationError(errors={"avatar": ["Unsupported image type"]})

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    filename = secure_filename(f"user_{current_user.id}_{int(utcnow().timestamp())}_{file.filename}")
    file.save(os.path.join(folder, filename))

    user = identity.set_avatar(db.session, current_user, f"/api/users/avatar/{filename}")
    return jsonify({"success": True, "profile_image": user.profile_image}), 200


@users_bp.route("/avatar/<path:filename>", methods=["GET"])
def get_avatar(filename):
    return send_from_directory(os.path.abspath(current_app.config["UPLOAD_FOLDER"]), filename)


@users_bp.route("/change-password", methods=["POST"])
@role_required()
def change_password(current_user):
    data = change_password_schema.load(request.get_json() or {})
    identity.change_password(db.session, current_user, data["current_password"], data["new_password"])
    return jsonify({"success": True, "msg": "Password changed successfully"}), 200
