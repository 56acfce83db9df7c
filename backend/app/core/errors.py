# app/core/errors.py
"""
Application error taxonomy.

Every failure the API reports on purpose is an ``AppError`` tagged with one
member of the closed ``ErrorKind`` enum. The kind carries the wire code, the
HTTP status and a default human-readable message; the exception handlers in
``app.main`` render it as::

    {"success": false, "error": {"code": "...", "message": "...", "details": ...}}
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from fastapi import status


class ErrorKind(Enum):
    # name = (code, http status, default message)
    AUTH_REQUIRED = ("AUTH_REQUIRED", status.HTTP_401_UNAUTHORIZED, "Authentication required")
    INVALID_TOKEN = ("AUTH_INVALID_TOKEN", status.HTTP_401_UNAUTHORIZED, "Invalid token")
    TOKEN_EXPIRED = ("AUTH_TOKEN_EXPIRED", status.HTTP_401_UNAUTHORIZED, "Token expired")
    USER_NOT_FOUND = ("AUTH_USER_NOT_FOUND", status.HTTP_404_NOT_FOUND, "User not found")
    FORBIDDEN = ("FORBIDDEN", status.HTTP_403_FORBIDDEN, "Insufficient permissions")
    PLAN_REQUIRED = ("PLAN_REQUIRED", status.HTTP_403_FORBIDDEN, "Subscription required")
    DUPLICATE_EMAIL = ("EMAIL_EXISTS", status.HTTP_400_BAD_REQUEST, "Email already registered")
    NO_PASSWORD_SET = ("AUTH_NO_PASSWORD", status.HTTP_401_UNAUTHORIZED, "Please use social login")
    INVALID_CREDENTIALS = ("AUTH_INVALID_CREDENTIALS", status.HTTP_401_UNAUTHORIZED, "Invalid email or password")
    PAYMENT_PROVIDER_ERROR = ("PAYMENT_PROVIDER_ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR, "Payment provider request failed")
    PAYMENT_NOT_COMPLETED = ("PAYMENT_NOT_COMPLETED", status.HTTP_400_BAD_REQUEST, "Payment not completed")
    VALIDATION_ERROR = ("VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST, "Invalid request")
    FEDERATED_LOGIN_UNAVAILABLE = ("FEDERATED_LOGIN_UNAVAILABLE", status.HTTP_503_SERVICE_UNAVAILABLE, "Social login is not configured")
    UPSTREAM_ERROR = ("UPSTREAM_ERROR", status.HTTP_502_BAD_GATEWAY, "Upstream service request failed")
    RATE_LIMITED = ("RATE_LIMITED", status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests, please try again later")

    def __init__(self, code: str, http_status: int, default_message: str):
        self.code = code
        self.http_status = http_status
        self.default_message = default_message


class AppError(Exception):
    """Raised by services and dependencies; rendered by the app-level handler."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None, details: Any = None):
        self.kind = kind
        self.message = message or kind.default_message
        self.details = details
        super().__init__(f"{kind.code}: {self.message}")

    @property
    def status_code(self) -> int:
        return self.kind.http_status

    def to_dict(self) -> dict:
        error: dict[str, Any] = {"code": self.kind.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"success": False, "error": error}
