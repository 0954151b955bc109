from marshmallow import fields, validate

from fitcoach.models import ASSIGNMENT_STATUSES
from fitcoach.schemas.base import BaseSchema, DIFFICULTY_LEVELS


class ExerciseSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    category = fields.String(required=True, validate=validate.Length(min=1, max=50))
    muscle_groups = fields.List(fields.String(), load_default=list)
    equipment = fields.String(load_default=None)
    instructions = fields.String(load_default=None)
    video_url = fields.Url(load_default=None)
    image_url = fields.Url(load_default=None)
    difficulty_level = fields.String(load_default=None, validate=validate.OneOf(DIFFICULTY_LEVELS))
    is_public = fields.Boolean(load_default=False)


class ExerciseArgsSchema(BaseSchema):
    category = fields.String(load_default=None)
    difficulty = fields.String(load_default=None, validate=validate.OneOf(DIFFICULTY_LEVELS))
    search = fields.String(load_default=None)


class TemplateExerciseSchema(BaseSchema):
    exercise_id = fields.Integer(required=True)
    sets = fields.Integer(load_default=None, validate=validate.Range(min=1))
    reps = fields.String(load_default=None)
    weight = fields.String(load_default=None)
    duration_seconds = fields.Integer(load_default=None, validate=validate.Range(min=0))
    rest_seconds = fields.Integer(load_default=None, validate=validate.Range(min=0))
    notes = fields.String(load_default=None)


class TemplateSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=150))
    description = fields.String(load_default=None)
    difficulty_level = fields.String(required=True, validate=validate.OneOf(DIFFICULTY_LEVELS))
    duration_minutes = fields.Integer(required=True, validate=validate.Range(min=1, max=600))
    category = fields.String(load_default=None)
    is_public = fields.Boolean(load_default=False)
    exercises = fields.List(fields.Nested(TemplateExerciseSchema), required=True, validate=validate.Length(min=1))


class TemplateArgsSchema(BaseSchema):
    category = fields.String(load_default=None)
    difficulty = fields.String(load_default=None, validate=validate.OneOf(DIFFICULTY_LEVELS))
    my_templates = fields.Boolean(load_default=False)


class AssignWorkoutSchema(BaseSchema):
    athlete_id = fields.Integer(required=True)
    template_id = fields.Integer(required=True)
    scheduled_date = fields.Date(load_default=None)
    notes = fields.String(load_default=None)


class AssignedArgsSchema(BaseSchema):
    status = fields.String(load_default=None, validate=validate.OneOf(ASSIGNMENT_STATUSES))
    date_from = fields.Date(load_default=None)
    date_to = fields.Date(load_default=None)


class ExerciseLogSchema(BaseSchema):
    exercise_id = fields.Integer(required=True)
    sets_completed = fields.Integer(load_default=None, validate=validate.Range(min=0))
    reps_completed = fields.String(load_default=None)
    weight_used = fields.String(load_default=None)
    duration_seconds = fields.Integer(load_default=None, validate=validate.Range(min=0))
    rest_seconds = fields.Integer(load_default=None, validate=validate.Range(min=0))
    difficulty_rating = fields.Integer(load_default=None, validate=validate.Range(min=1, max=10))
    notes = fields.String(load_default=None)


class CompleteWorkoutSchema(BaseSchema):
    exercise_logs = fields.List(fields.Nested(ExerciseLogSchema), load_default=list)
    notes = fields.String(load_default=None)
    difficulty_rating = fields.Integer(load_default=None, validate=validate.Range(min=1, max=10))


class FeedbackSchema(BaseSchema):
    feedback = fields.String(required=True, validate=validate.Length(min=1))
