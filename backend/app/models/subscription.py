# app/models/subscription.py
"""
Database model for subscriptions.
The single entitlement record of a user: plan, status and billing period.
"""
import uuid
from tortoise import fields, models

from app.models.enums import Plan, SubscriptionStatus

class Subscription(models.Model):
    """
    Subscription database model.

    Relationships:
    - Belongs to exactly one User (one-to-one); deleted with the user
    - Has many Payments (one-to-many, via related_name="payments")
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.OneToOneField(
        "models.User",
        related_name="subscription",
        on_delete=fields.CASCADE,
    )
    plan = fields.CharEnumField(Plan, max_length=16, default=Plan.FREE)
    status = fields.CharEnumField(SubscriptionStatus, max_length=16, default=SubscriptionStatus.ACTIVE)
    current_period_start = fields.DatetimeField()
    current_period_end = fields.DatetimeField()
    paypal_subscription_id = fields.CharField(max_length=64, null=True)  # Last captured PayPal order id
    cancel_at_period_end = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "subscriptions"
