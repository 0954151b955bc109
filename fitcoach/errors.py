import logging

from flask import jsonify, current_app
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from fitcoach.extensions import db

# Conflict reason codes
DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
ALREADY_COMPLETED = "ALREADY_COMPLETED"
ALREADY_ASSIGNED = "ALREADY_ASSIGNED"
CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
NOT_ASSIGNED_TO_TRAINER = "NOT_ASSIGNED_TO_TRAINER"
INVALID_TRANSITION = "INVALID_TRANSITION"

INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
USER_NOT_FOUND = "USER_NOT_FOUND"


class ServiceError(Exception):
    """Base class for every error a service can hand back to its caller."""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message=None, code=None, errors=None):
        self.message = message or self.default_message
        if code:
            self.code = code
        self.errors = errors or {}
        super().__init__(self.message)

    def to_dict(self):
        payload = {"success": False, "error": self.code, "msg": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(ServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ServiceError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class AuthError(ServiceError):
    status_code = 401
    code = INVALID_CREDENTIALS
    default_message = "Invalid email or password"


class ForbiddenError(ServiceError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Insufficient permissions"


class ExternalServiceError(ServiceError):
    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"
    default_message = "External service unavailable"


def _is_unique_violation(error):
    text = str(error.orig).lower()
    return "unique" in text or "duplicate key" in text


def register_error_handlers(app):

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        db.session.rollback()
        if error.status_code >= 500:
            logging.error(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(error):
        db.session.rollback()
        return jsonify(ValidationError(errors=error.messages).to_dict()), 400

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        db.session.rollback()
        logging.warning(f"Integrity error: {error.orig}")
        if _is_unique_violation(error):
            return jsonify(ConflictError("Resource already exists", code="DUPLICATE_RESOURCE").to_dict()), 409
        return jsonify(ValidationError("Invalid reference or value").to_dict()), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        payload = {"success": False, "error": error.name.upper().replace(" ", "_"), "msg": error.description}
        return jsonify(payload), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logging.exception(f"Unhandled error: {error}")
        message = str(error) if current_app.debug else "Internal server error"
        return jsonify({"success": False, "error": "INTERNAL_ERROR", "msg": message}), 500
