from marshmallow import fields, validate

from fitcoach.models import RECORD_TYPES
from fitcoach.schemas.base import BaseSchema, PaginationArgsSchema


class ProgressRecordSchema(BaseSchema):
    record_type = fields.String(required=True, validate=validate.OneOf(RECORD_TYPES))
    value = fields.Float(load_default=None)
    unit = fields.String(load_default=None, validate=validate.Length(max=20))
    body_part = fields.String(load_default=None)
    image_url = fields.String(load_default=None)
    notes = fields.String(load_default=None)


class ProgressArgsSchema(PaginationArgsSchema):
    record_type = fields.String(load_default=None, validate=validate.OneOf(RECORD_TYPES))
    date_from = fields.Date(load_default=None)
    date_to = fields.Date(load_default=None)
    limit = fields.Integer(load_default=50, validate=validate.Range(min=1, max=100))
