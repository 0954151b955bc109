from marshmallow import fields, validate

from fitcoach.schemas.base import BaseSchema
from fitcoach.services.analytics import PERIODS, GROUPINGS


class DashboardArgsSchema(BaseSchema):
    period = fields.String(load_default="month", validate=validate.OneOf(PERIODS))
    date_from = fields.Date(load_default=None)
    date_to = fields.Date(load_default=None)


class WorkoutStatsArgsSchema(BaseSchema):
    athlete_id = fields.Integer(load_default=None)
    period = fields.String(load_default="month", validate=validate.OneOf(PERIODS[:3]))
    group_by = fields.String(load_default="week", validate=validate.OneOf(GROUPINGS))


class AthletePerformanceArgsSchema(BaseSchema):
    days = fields.Integer(load_default=30, validate=validate.Range(min=1, max=365))
