from marshmallow import fields, validate

from fitcoach.models import NOTIFICATION_TYPES, PRIORITIES, MESSAGE_TYPES
from fitcoach.schemas.base import BaseSchema, PaginationArgsSchema


class NotificationSchema(BaseSchema):
    user_id = fields.Integer(required=True)
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    message = fields.String(required=True, validate=validate.Length(min=1, max=1000))
    type = fields.String(required=True, validate=validate.OneOf(NOTIFICATION_TYPES))
    priority = fields.String(load_default="medium", validate=validate.OneOf(PRIORITIES))
    action_url = fields.String(load_default=None, validate=validate.Length(max=255))
    action_data = fields.Dict(load_default=None)
    image_url = fields.String(load_default=None)
    expires_at = fields.DateTime(load_default=None)


class NotificationArgsSchema(PaginationArgsSchema):
    type = fields.String(load_default=None, validate=validate.OneOf(NOTIFICATION_TYPES))
    unread_only = fields.Boolean(load_default=False)


class MessageSchema(BaseSchema):
    recipient_id = fields.Integer(required=True)
    subject = fields.String(load_default=None, validate=validate.Length(max=200))
    body = fields.String(required=True, validate=validate.Length(min=1, max=5000))
    message_type = fields.String(load_default="text", validate=validate.OneOf(MESSAGE_TYPES))
    related_record_id = fields.Integer(load_default=None)
    related_record_type = fields.String(load_default=None, validate=validate.Length(max=50))


class InboxArgsSchema(PaginationArgsSchema):
    unread_only = fields.Boolean(load_default=False)


class BulkNotificationSchema(BaseSchema):
    user_ids = fields.List(fields.Integer(), load_default=None, validate=validate.Length(min=1))
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    message = fields.String(required=True, validate=validate.Length(min=1, max=1000))
    type = fields.String(load_default="system", validate=validate.OneOf(NOTIFICATION_TYPES))
    priority = fields.String(load_default="medium", validate=validate.OneOf(PRIORITIES))
    send_email = fields.Boolean(load_default=False)
