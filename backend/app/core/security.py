# app/core/security.py
"""
Security module for authentication.
Handles password hashing and JWT bearer token issuance/verification.
"""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Callable, Optional

import jwt  # PyJWT
from passlib.context import CryptContext

from app.config import settings
from app.core.errors import AppError, ErrorKind

# Password hashing context
# Argon2 is a modern, salted, memory-hard password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Never store plain text passwords. Always use this function before saving.
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plain text password against a stored Argon2 hash."""
    return pwd_context.verify(plain, hashed)


def parse_duration(value: str) -> dt.timedelta:
    """
    Parse a compact duration such as ``7d``, ``12h``, ``30m``, ``45s`` or ``3600``.

    Raises:
        ValueError: If the value is not a positive duration
    """
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = int(match.group(1)), match.group(2)
    if amount <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return dt.timedelta(seconds=amount * _DURATION_UNITS[unit])


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    issued_at: dt.datetime
    expires_at: dt.datetime


class TokenService:
    """
    Issues and verifies stateless, signed, time-limited bearer tokens.

    Token payload:
        - sub: Subject (user ID)
        - email: User email
        - iat: Issued at timestamp
        - exp: Expiration timestamp

    There is no server-side session table; a token is valid until ``exp``.
    """

    def __init__(
        self,
        secret: str,
        ttl: dt.timedelta = dt.timedelta(days=7),
        algorithm: str = JWT_ALG,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self.secret = secret
        self.ttl = ttl
        self.algorithm = algorithm
        self.clock = clock

    def issue(self, user_id: str, email: str) -> str:
        now = self.clock()
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises:
            AppError(TOKEN_EXPIRED): Signature is valid but ``exp`` has passed
            AppError(INVALID_TOKEN): Bad signature, malformed token or missing claims
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise AppError(ErrorKind.TOKEN_EXPIRED)
        except jwt.InvalidTokenError:
            raise AppError(ErrorKind.INVALID_TOKEN)

        user_id = payload.get("sub")
        email = payload.get("email")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
            raise AppError(ErrorKind.INVALID_TOKEN)
        return TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=dt.datetime.fromtimestamp(payload["iat"], tz=dt.timezone.utc),
            expires_at=dt.datetime.fromtimestamp(payload["exp"], tz=dt.timezone.utc),
        )


def build_token_service(clock: Optional[Callable[[], dt.datetime]] = None) -> TokenService:
    """Construct the token service from ``settings``."""
    return TokenService(
        secret=settings.jwt_secret,
        ttl=parse_duration(settings.jwt_expires_in),
        clock=clock or utc_now,
    )
