from marshmallow import fields, validate, validates, ValidationError

from fitcoach.models import ROLES
from fitcoach.schemas.base import BaseSchema, DIFFICULTY_LEVELS


class RegisterSchema(BaseSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    first_name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    last_name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    role = fields.String(required=True, validate=validate.OneOf(ROLES))
    phone = fields.String(load_default=None, validate=validate.Length(max=30))


class LoginSchema(BaseSchema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)


class ChangePasswordSchema(BaseSchema):
    current_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True)


class ForgotPasswordSchema(BaseSchema):
    email = fields.Email(required=True)


class ResetPasswordSchema(BaseSchema):
    token = fields.String(required=True)
    new_password = fields.String(required=True, load_only=True)


class ProfileUpdateSchema(BaseSchema):
    """User fields plus every role-specific profile field; the service keeps the ones matching the role."""

    first_name = fields.String(validate=validate.Length(min=1, max=100))
    last_name = fields.String(validate=validate.Length(min=1, max=100))
    phone = fields.String(allow_none=True, validate=validate.Length(max=30))

    certification = fields.String(allow_none=True)
    specialization = fields.String(allow_none=True)
    years_experience = fields.Integer(allow_none=True, validate=validate.Range(min=0, max=80))
    bio = fields.String(allow_none=True)

    birth_date = fields.Date(allow_none=True)
    gender = fields.String(allow_none=True, validate=validate.OneOf(("M", "F", "Other")))
    height = fields.Float(allow_none=True, validate=validate.Range(min=0, max=300))
    weight = fields.Float(allow_none=True, validate=validate.Range(min=0, max=500))
    fitness_level = fields.String(allow_none=True, validate=validate.OneOf(DIFFICULTY_LEVELS))
    goals = fields.String(allow_none=True)
    medical_conditions = fields.String(allow_none=True)
    emergency_contact_name = fields.String(allow_none=True)
    emergency_contact_phone = fields.String(allow_none=True)

    @validates("first_name")
    def validate_first_name(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("First name cannot be blank")
