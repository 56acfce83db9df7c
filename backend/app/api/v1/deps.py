# app/api/v1/deps.py
from typing import Optional

from fastapi import Depends, Header, Request

from app.config import settings
from app.core.errors import AppError, ErrorKind
from app.core.security import TokenService, build_token_service
from app.models.enums import Plan, Role
from app.models.user import User
from app.services.credentials import CredentialStore
from app.services.google_oauth import GoogleOAuthClient, build_google_client
from app.services.image_generation import ImageGenerationService
from app.services.ledger import SubscriptionLedger
from app.services.payments import PaymentCaptureFlow
from app.services.paypal import PayPalClient, build_paypal_client


# ------------------------------------------------------------------------------
# Service handles (constructed per request; tests swap them via dependency_overrides)
# ------------------------------------------------------------------------------
def get_token_service() -> TokenService:
    return build_token_service()

def get_ledger() -> SubscriptionLedger:
    return SubscriptionLedger()

def get_credential_store(ledger: SubscriptionLedger = Depends(get_ledger)) -> CredentialStore:
    return CredentialStore(ledger)

def get_paypal_client() -> PayPalClient:
    return build_paypal_client()

def get_capture_flow(
    ledger: SubscriptionLedger = Depends(get_ledger),
    paypal: PayPalClient = Depends(get_paypal_client),
) -> PaymentCaptureFlow:
    return PaymentCaptureFlow(ledger, paypal)

def get_google_client() -> GoogleOAuthClient:
    return build_google_client()

def get_image_service() -> ImageGenerationService:
    return ImageGenerationService()


# ------------------------------------------------------------------------------
# Authentication
# ------------------------------------------------------------------------------
def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Cookie first, then ``Authorization: Bearer``; the first non-empty value wins."""
    token = request.cookies.get(settings.auth_cookie_name)
    if token:
        return token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None

async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    store: CredentialStore = Depends(get_credential_store),
) -> User:
    """
    FastAPI dependency resolving the authenticated caller.

    Raises:
        AppError (401 AUTH_REQUIRED): No token in cookie or header
        AppError (401 AUTH_INVALID_TOKEN / AUTH_TOKEN_EXPIRED): Token rejected
        AppError (404 AUTH_USER_NOT_FOUND): Token valid but the account no longer exists

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": str(user.id)}
    """
    token = extract_token(request, authorization)
    if not token:
        raise AppError(ErrorKind.AUTH_REQUIRED)

    claims = tokens.verify(token)
    user = await store.get_by_id(claims.user_id)
    if not user:
        raise AppError(ErrorKind.USER_NOT_FOUND)
    return user

async def optional_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    store: CredentialStore = Depends(get_credential_store),
) -> Optional[User]:
    """Like ``get_current_user`` but yields None instead of failing."""
    try:
        return await get_current_user(request, authorization, tokens, store)
    except AppError:
        return None


# ------------------------------------------------------------------------------
# Authorization gates (compose after get_current_user; first failure wins)
# ------------------------------------------------------------------------------
def require_role(*roles: Role):
    """
    Dependency factory: the caller's role must be one of ``roles``.

    Usage:
        @router.get("/admin/users", dependencies=[Depends(require_role(Role.ADMIN))])
    """
    allowed = frozenset(roles)

    async def _require_role(current: User = Depends(get_current_user)) -> User:
        if current.role not in allowed:
            raise AppError(ErrorKind.FORBIDDEN)
        return current

    return _require_role

require_admin = require_role(Role.ADMIN)

def require_plan(minimum: Plan):
    """
    Dependency factory: the caller's subscription plan must rank at least
    ``minimum`` in FREE < BASIC < PREMIUM < ENTERPRISE.
    """
    async def _require_plan(
        current: User = Depends(get_current_user),
        ledger: SubscriptionLedger = Depends(get_ledger),
    ) -> User:
        subscription = await ledger.get_for_user(current)
        if subscription is None or not subscription.plan.includes(minimum):
            raise AppError(
                ErrorKind.PLAN_REQUIRED,
                f"{minimum.value} plan or higher required",
                details={
                    "requiredPlan": minimum.value,
                    "currentPlan": subscription.plan.value if subscription else None,
                },
            )
        return current

    return _require_plan
