"""
Pydantic schemas for PayPal payment endpoints.
"""
from decimal import Decimal
from pydantic import BaseModel, Field

class CreateOrderIn(BaseModel):
    """
    Request model for creating a PayPal order.
    Plan and amount are checked against the plan catalogue by the capture flow.
    """
    plan: str = Field(min_length=1)  # BASIC / PREMIUM / ENTERPRISE
    amount: Decimal  # Must equal the catalogue price of the plan

class CaptureOrderIn(BaseModel):
    """
    Request model for capturing a buyer-approved PayPal order.
    """
    orderId: str = Field(min_length=1)  # PayPal order id returned by create-order
    plan: str = Field(min_length=1)  # Plan granted on successful capture
