"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Identity record (local and/or federated credentials, role)
- Subscription: Entitlement record, exactly one per user
- Payment: Captured charge, belongs to a Subscription
"""
from .enums import Role, Plan, SubscriptionStatus, PaymentStatus
from .user import User
from .subscription import Subscription
from .payment import Payment
