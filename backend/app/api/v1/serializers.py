# app/api/v1/serializers.py
"""
Model-to-JSON helpers shared by the routers.
"""
import datetime as dt
from typing import Optional

from app.models.payment import Payment
from app.models.subscription import Subscription
from app.models.user import User


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def subscription_to_dict(s: Optional[Subscription]) -> Optional[dict]:
    if s is None:
        return None
    return {
        "id": str(s.id),
        "plan": s.plan.value,
        "status": s.status.value,
        "currentPeriodStart": _iso(s.current_period_start),
        "currentPeriodEnd": _iso(s.current_period_end),
        "paypalSubscriptionId": s.paypal_subscription_id,
        "cancelAtPeriodEnd": s.cancel_at_period_end,
    }


def payment_to_dict(p: Payment) -> dict:
    return {
        "id": str(p.id),
        "subscriptionId": str(p.subscription_id),
        "amount": str(p.amount),
        "currency": p.currency,
        "status": p.status.value,
        "paypalOrderId": p.paypal_order_id,
        "paypalPayerId": p.paypal_payer_id,
        "createdAt": _iso(p.created_at),
    }


def user_to_dict(u: User, subscription: Optional[Subscription] = None) -> dict:
    """Public user representation; never includes the password hash."""
    return {
        "id": str(u.id),
        "email": u.email,
        "name": u.name,
        "avatar": u.avatar,
        "role": u.role.value,
        "provider": u.provider,
        "subscription": subscription_to_dict(subscription),
        "createdAt": _iso(u.created_at),
    }
