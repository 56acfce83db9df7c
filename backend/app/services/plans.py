"""
Static subscription plan catalogue (prices in USD per month).
"""
from decimal import Decimal
from typing import Dict, List

from app.models.enums import Plan

BILLING_PERIOD_DAYS = 30
CURRENCY = "USD"

PLAN_CATALOG: Dict[Plan, dict] = {
    Plan.FREE: {
        "name": "Free",
        "price": Decimal("0.00"),
        "features": [
            "Basic AI features",
            "10 AI requests per day",
            "Email support",
            "Access to community",
        ],
        "limits": {"aiRequests": 10, "storage": "100MB"},
        "popular": False,
    },
    Plan.BASIC: {
        "name": "Basic",
        "price": Decimal("9.99"),
        "features": [
            "All Free features",
            "100 AI requests per day",
            "Priority email support",
            "Advanced analytics",
            "Custom branding",
        ],
        "limits": {"aiRequests": 100, "storage": "1GB"},
        "popular": False,
    },
    Plan.PREMIUM: {
        "name": "Premium",
        "price": Decimal("29.99"),
        "features": [
            "All Basic features",
            "Unlimited AI requests",
            "24/7 priority support",
            "Advanced AI models",
            "API access",
            "Team collaboration",
        ],
        "limits": {"aiRequests": -1, "storage": "10GB"},
        "popular": True,
    },
    Plan.ENTERPRISE: {
        "name": "Enterprise",
        "price": Decimal("99.99"),
        "features": [
            "All Premium features",
            "Dedicated account manager",
            "Custom AI training",
            "SLA guarantee",
            "Advanced security",
            "Unlimited storage",
        ],
        "limits": {"aiRequests": -1, "storage": "Unlimited"},
        "popular": False,
    },
}


def price_of(plan: Plan) -> Decimal:
    return PLAN_CATALOG[plan]["price"]


def list_plans() -> List[dict]:
    """Catalogue in entitlement order, JSON-ready."""
    return [
        {
            "id": plan.value,
            "name": entry["name"],
            "price": str(entry["price"]),
            "currency": CURRENCY,
            "interval": "month",
            "features": list(entry["features"]),
            "limits": dict(entry["limits"]),
            "popular": entry["popular"],
        }
        for plan, entry in sorted(PLAN_CATALOG.items(), key=lambda kv: kv[0].level)
    ]
