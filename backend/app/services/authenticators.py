"""
Login strategies behind one interface.

Routes depend on ``Authenticator`` only; ``LocalAuthenticator`` checks an
email/password pair, ``FederatedAuthenticator`` turns an OAuth2 authorization
code into a user.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union

from app.core.errors import AppError, ErrorKind
from app.models.user import User
from app.services.credentials import CredentialStore
from app.services.google_oauth import GoogleOAuthClient


@dataclass(frozen=True)
class LocalCredentials:
    email: str
    password: str


@dataclass(frozen=True)
class FederatedCredentials:
    code: str


Credentials = Union[LocalCredentials, FederatedCredentials]


class Authenticator(Protocol):
    async def authenticate(self, credentials: Credentials) -> User:
        """Return the authenticated user or raise AppError."""
        ...


class LocalAuthenticator:
    def __init__(self, store: CredentialStore):
        self.store = store

    async def authenticate(self, credentials: LocalCredentials) -> User:
        user = await self.store.find_by_email(credentials.email)
        if user is None:
            raise AppError(ErrorKind.INVALID_CREDENTIALS)
        # NO_PASSWORD_SET propagates for social-login-only accounts
        if not await self.store.verify_password(user, credentials.password):
            raise AppError(ErrorKind.INVALID_CREDENTIALS)
        return user


class FederatedAuthenticator:
    def __init__(self, store: CredentialStore, oauth: GoogleOAuthClient):
        self.store = store
        self.oauth = oauth

    async def authenticate(self, credentials: FederatedCredentials) -> User:
        profile = await self.oauth.fetch_profile(credentials.code)
        return await self.store.find_or_create_federated(
            provider_id=profile.provider_id,
            email=profile.email,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            provider=profile.provider,
        )
