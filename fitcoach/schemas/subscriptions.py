from marshmallow import fields, validate

from fitcoach.schemas.base import BaseSchema
from fitcoach.services.subscriptions import BILLING_CYCLES, PLANS


class SubscribeSchema(BaseSchema):
    plan_id = fields.String(required=True, validate=validate.OneOf(tuple(PLANS)))
    billing_cycle = fields.String(load_default="monthly", validate=validate.OneOf(BILLING_CYCLES))
    payment_method = fields.String(load_default=None, validate=validate.Length(max=50))


class CancelSubscriptionSchema(BaseSchema):
    reason = fields.String(load_default=None, validate=validate.Length(max=255))


class PaymentIntentSchema(BaseSchema):
    plan_id = fields.String(required=True, validate=validate.OneOf(tuple(PLANS)))
    billing_cycle = fields.String(load_default="monthly", validate=validate.OneOf(BILLING_CYCLES))


class ProcessorSubscriptionSchema(BaseSchema):
    price_id = fields.String(required=True)
    trial_days = fields.Integer(load_default=None, validate=validate.Range(min=0, max=90))


class CancelProcessorSubscriptionSchema(BaseSchema):
    subscription_id = fields.String(required=True, validate=validate.Length(min=1))
    cancel_immediately = fields.Boolean(load_default=False)
