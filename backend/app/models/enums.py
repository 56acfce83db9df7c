# app/models/enums.py
"""
Enumerations shared by the database models, schemas and authorization gates.
"""
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class Plan(str, Enum):
    """Subscription tier. Declaration order is the entitlement order."""
    FREE = "FREE"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"
    ENTERPRISE = "ENTERPRISE"

    @property
    def level(self) -> int:
        return PLAN_LEVELS[self]

    def includes(self, required: "Plan") -> bool:
        """True if this plan grants everything ``required`` grants."""
        return self.level >= required.level


PLAN_LEVELS = {
    Plan.FREE: 0,
    Plan.BASIC: 1,
    Plan.PREMIUM: 2,
    Plan.ENTERPRISE: 3,
}


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELED = "CANCELED"
    PAST_DUE = "PAST_DUE"
    EXPIRED = "EXPIRED"


class PaymentStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"
