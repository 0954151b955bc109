from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token

from fitcoach.extensions import db, limiter
from fitcoach.schemas.auth import (
    RegisterSchema, LoginSchema, ForgotPasswordSchema, ResetPasswordSchema
)
from fitcoach.services import identity

auth_bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
forgot_schema = ForgotPasswordSchema()
reset_schema = ResetPasswordSchema()


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("5 per minute")
def register():
    data = register_schema.load(request.get_json() or {})
    user = identity.register(db.session, **data)
    return jsonify({
        "success": True,
        "msg": "User registered successfully",
        "user": user.to_dict(include_profile=True),
        "access_token": issue_token(user),
    }), 201


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    data = login_schema.load(request.get_json() or {})
    user = identity.authenticate(db.session, data["email"], data["password"])
    return jsonify({
        "success": True,
        "msg": "Login successful",
        "user": user.to_dict(include_profile=True),
        "access_token": issue_token(user),
    }), 200


@auth_bp.route("/forgot-password", methods=["POST"])
@limiter.limit("3 per minute")
def forgot_password():
    data = forgot_schema.load(request.get_json() or {})
    identity.forgot_password(db.session, data["email"])
    # same answer whether or not the email exists
    return jsonify({
        "success": True,
        "msg": "If that email is registered, a reset link has been sent",
    }), 200


@auth_bp.route("/reset-password/validate", methods=["GET"])
def validate_reset_token():
    token = request.args.get("token", "")
    result = identity.validate_reset_token(db.session, token)
    return jsonify({"success": True, **result}), 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = reset_schema.load(request.get_json() or {})
    identity.reset_password(db.session, data["token"], data["new_password"])
    return jsonify({"success": True, "msg": "Password has been reset"}), 200
