"""
Credential store: user identity records and password verification.

A user never exists without its subscription: every creation path writes the
User and its default FREE subscription in one transaction.
"""
from __future__ import annotations

import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool
from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from app.core import security
from app.core.db import DEFAULT_CONNECTION
from app.core.errors import AppError, ErrorKind
from app.models.enums import Role
from app.models.payment import Payment
from app.models.subscription import Subscription
from app.models.user import User
from app.services.ledger import SubscriptionLedger

logger = logging.getLogger("uvicorn.error")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class CredentialStore:
    def __init__(self, ledger: SubscriptionLedger, connection_name: str = DEFAULT_CONNECTION):
        self.ledger = ledger
        self.connection_name = connection_name

    async def find_by_email(self, email: str) -> Optional[User]:
        return await User.get_or_none(email=normalize_email(email))

    async def get_by_id(self, user_id: str) -> Optional[User]:
        try:
            return await User.get_or_none(id=user_id)
        except (ValueError, TypeError):
            # Not a UUID
            return None

    async def create_local(
        self, email: str, password: str, name: Optional[str], role: Role = Role.USER
    ) -> User:
        """
        Register an email/password account with its default subscription.

        Raises:
            AppError(DUPLICATE_EMAIL): Email already registered
        """
        email = normalize_email(email)
        if await User.exists(email=email):
            raise AppError(ErrorKind.DUPLICATE_EMAIL)
        password_hash = await run_in_threadpool(security.hash_password, password)
        try:
            async with in_transaction(self.connection_name) as conn:
                user = await User.create(
                    using_db=conn,
                    email=email,
                    password_hash=password_hash,
                    name=name,
                    role=role,
                )
                await self.ledger.create_default(user, using_db=conn)
        except IntegrityError:
            # Lost a registration race on the unique email column
            raise AppError(ErrorKind.DUPLICATE_EMAIL)
        logger.info("[auth] registered user=%s", user.id)
        return user

    async def verify_password(self, user: User, password: str) -> bool:
        """
        Raises:
            AppError(NO_PASSWORD_SET): Federated-only account without a password
        """
        if not user.password_hash:
            raise AppError(ErrorKind.NO_PASSWORD_SET)
        return await run_in_threadpool(security.verify_password, password, user.password_hash)

    async def find_or_create_federated(
        self,
        provider_id: str,
        email: str,
        display_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        provider: str = "google",
    ) -> User:
        """
        Resolve a federated identity to a user, creating one on first login.

        The provider id wins over the email when both match different users.
        A local account found by email is linked to the provider.
        """
        email = normalize_email(email)
        candidates = await User.filter(Q(provider_id=provider_id) | Q(email=email))
        user = next((u for u in candidates if u.provider_id == provider_id), None)
        if user is None and candidates:
            user = candidates[0]

        if user is not None:
            if not user.provider_id:
                user.provider = provider
                user.provider_id = provider_id
                if not user.avatar and avatar_url:
                    user.avatar = avatar_url
                if not user.name and display_name:
                    user.name = display_name
                await user.save()
                logger.info("[auth] linked user=%s to %s", user.id, provider)
            return user

        try:
            async with in_transaction(self.connection_name) as conn:
                user = await User.create(
                    using_db=conn,
                    email=email,
                    name=display_name,
                    avatar=avatar_url,
                    provider=provider,
                    provider_id=provider_id,
                    role=Role.USER,
                )
                await self.ledger.create_default(user, using_db=conn)
        except IntegrityError:
            # Concurrent first login for the same identity committed first
            existing = await User.get_or_none(provider_id=provider_id)
            if existing is None:
                raise
            return existing
        logger.info("[auth] created federated user=%s via %s", user.id, provider)
        return user

    async def change_password(self, user: User, current: str, new: str) -> None:
        if not await self.verify_password(user, current):
            raise AppError(ErrorKind.INVALID_CREDENTIALS, "Current password is incorrect")
        user.password_hash = await run_in_threadpool(security.hash_password, new)
        await user.save()

    async def update_profile(self, user: User, name: Optional[str] = None, avatar: Optional[str] = None) -> User:
        if name is not None:
            user.name = name
        if avatar is not None:
            user.avatar = avatar
        await user.save()
        return user

    async def delete(self, user: User) -> None:
        """Delete the user with its subscription and payments."""
        async with in_transaction(self.connection_name) as conn:
            subscription_ids = await (
                Subscription.filter(user_id=user.id).using_db(conn).values_list("id", flat=True)
            )
            if subscription_ids:
                await Payment.filter(subscription_id__in=subscription_ids).using_db(conn).delete()
            await Subscription.filter(user_id=user.id).using_db(conn).delete()
            await User.filter(id=user.id).using_db(conn).delete()
        logger.info("[auth] deleted user=%s", user.id)
