# app/core/bootstrap.py
"""
Bootstrap module for application initialization.
Creates the default admin account (with its subscription) on first startup.
"""
import os
import logging
from typing import Optional

from app.core.errors import AppError
from app.models.enums import Role
from app.models.user import User
from app.services.credentials import CredentialStore
from app.services.ledger import SubscriptionLedger

logger = logging.getLogger("uvicorn.error")

async def ensure_default_admin(store: Optional[CredentialStore] = None) -> Optional[User]:
    """
    If no admin exists in the database, create a default admin based on environment variables.
    Only takes effect under the following conditions:
      - Currently no user with role=ADMIN
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    Environment variables:
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_NAME     (default: "Administrator")
      ADMIN_PASSWORD (required, otherwise won't create)
    """
    if await User.filter(role=Role.ADMIN).exists():
        return None

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return None

    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_name = os.getenv("ADMIN_NAME", "Administrator")
    store = store or CredentialStore(SubscriptionLedger())

    existing = await store.find_by_email(admin_email)
    if existing is not None:
        # Registered as a regular user earlier: promote instead of duplicating
        existing.role = Role.ADMIN
        await existing.save()
        logger.warning("[bootstrap] Promoted existing user to admin -> email=%s id=%s", existing.email, existing.id)
        return existing

    try:
        u = await store.create_local(admin_email, admin_password, admin_name, role=Role.ADMIN)
    except AppError:
        logger.exception("[bootstrap] Could not create default admin email=%s", admin_email)
        return None
    logger.warning("[bootstrap] Created default admin -> email=%s id=%s", u.email, u.id)
    return u
