from marshmallow import EXCLUDE, fields, validate

from fitcoach.extensions import ma

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")


class BaseSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE


class PaginationArgsSchema(BaseSchema):
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(load_default=20, validate=validate.Range(min=1, max=100))
