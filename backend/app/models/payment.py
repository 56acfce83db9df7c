import uuid
from tortoise import fields, models

from app.models.enums import PaymentStatus

class Payment(models.Model):
    """
    Append-only record of a captured charge.
    - paypal_order_id: PayPal order id, unique (a captured order is recorded once)
    - paypal_payer_id: PayPal payer id from the capture response
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    subscription = fields.ForeignKeyField(
        "models.Subscription", related_name="payments", on_delete=fields.CASCADE
    )
    amount = fields.DecimalField(max_digits=10, decimal_places=2)
    currency = fields.CharField(max_length=3, default="USD")
    status = fields.CharEnumField(PaymentStatus, max_length=16, default=PaymentStatus.COMPLETED)
    paypal_order_id = fields.CharField(max_length=64, unique=True, index=True)
    paypal_payer_id = fields.CharField(max_length=64, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "payments"
        ordering = ["-created_at"]
