# app/models/user.py
"""
Database model for users.
Represents an identity record: local credentials and/or a federated login
(external provider + provider id), profile fields and role.
"""
import uuid
from tortoise import fields, models

from app.models.enums import Role

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has exactly one Subscription (one-to-one, via related_name="subscription")

    Security:
    - Password is stored as an Argon2 hash; null for federated-only accounts
    - Email is unique and stored lower-cased
    - Federated accounts carry provider + provider_id
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    email = fields.CharField(max_length=256, unique=True, index=True)  # Login identity (lower-cased)
    password_hash = fields.CharField(max_length=255, null=True)  # Null when the account only uses social login
    name = fields.CharField(max_length=128, null=True)
    avatar = fields.CharField(max_length=1024, null=True)
    provider = fields.CharField(max_length=32, null=True)  # e.g. "google"
    provider_id = fields.CharField(max_length=255, null=True, unique=True)
    role = fields.CharEnumField(Role, max_length=16, default=Role.USER)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name

    @property
    def is_federated(self) -> bool:
        return bool(self.provider and self.provider_id)
