import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Depends, Request, Response, status
from fastapi.responses import RedirectResponse

from app.api.v1.deps import (
    get_credential_store,
    get_current_user,
    get_google_client,
    get_ledger,
    get_token_service,
)
from app.api.v1.serializers import user_to_dict
from app.config import settings
from app.core.errors import AppError
from app.core.rate_limit import AUTH_LIMIT, limiter
from app.core.security import TokenService
from app.models.user import User
from app.schemas.auth import ChangePasswordIn, LoginIn, RegisterIn
from app.services.authenticators import (
    FederatedAuthenticator,
    FederatedCredentials,
    LocalAuthenticator,
    LocalCredentials,
)
from app.services.credentials import CredentialStore
from app.services.google_oauth import GoogleOAuthClient
from app.services.ledger import SubscriptionLedger

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/auth", tags=["auth"])

OAUTH_STATE_COOKIE = "oauth_state"

def _set_auth_cookie(response: Response, token: str, tokens: TokenService) -> None:
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=int(tokens.ttl.total_seconds()),
    )

@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request,
    body: RegisterIn,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    ledger: SubscriptionLedger = Depends(get_ledger),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Register a new email/password account.

    The user and its FREE subscription are created together; the issued token
    is returned in the body and also set as an HttpOnly cookie.

    Error codes:
        - VALIDATION_ERROR: Invalid email, password shorter than 8 characters or empty name
        - EMAIL_EXISTS: Email already registered
        - RATE_LIMITED (429): Too many auth attempts from this address
    """
    user = await store.create_local(body.email, body.password, body.name)
    token = tokens.issue(str(user.id), user.email)
    _set_auth_cookie(response, token, tokens)
    subscription = await ledger.get_for_user(user)
    return {"success": True, "data": {"user": user_to_dict(user, subscription), "token": token}}

@router.post("/login")
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    body: LoginIn,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    ledger: SubscriptionLedger = Depends(get_ledger),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Authenticate with email and password.

    Error codes:
        - AUTH_INVALID_CREDENTIALS: Unknown email or wrong password
        - AUTH_NO_PASSWORD: Account only signs in through Google
        - RATE_LIMITED (429): Too many auth attempts from this address
    """
    user = await LocalAuthenticator(store).authenticate(LocalCredentials(body.email, body.password))
    token = tokens.issue(str(user.id), user.email)
    _set_auth_cookie(response, token, tokens)
    subscription = await ledger.get_for_user(user)
    return {"success": True, "data": {"user": user_to_dict(user, subscription), "token": token}}

@router.get("/google")
async def google_login(oauth: GoogleOAuthClient = Depends(get_google_client)):
    """
    Redirect to Google's consent screen.

    A random state value is kept in a short-lived HttpOnly cookie and checked
    on the callback.
    """
    state = secrets.token_urlsafe(24)
    redirect = RedirectResponse(oauth.authorization_url(state), status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    redirect.set_cookie(
        OAUTH_STATE_COOKIE, state, httponly=True, secure=settings.is_production, samesite="lax", max_age=600
    )
    return redirect

@router.get("/google/callback")
async def google_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    oauth_state: str | None = Cookie(default=None),
    store: CredentialStore = Depends(get_credential_store),
    oauth: GoogleOAuthClient = Depends(get_google_client),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Finish Google sign-in: issue a token, set the cookie and redirect to the
    app with ``?token=``. Failures redirect to the app's login page.
    """
    app_url = settings.app_url.rstrip("/")
    failure = RedirectResponse(f"{app_url}/login?error=oauth_failed", status_code=status.HTTP_302_FOUND)
    failure.delete_cookie(OAUTH_STATE_COOKIE)

    if error or not code:
        logger.warning("[oauth] google callback without code (error=%s)", error)
        return failure
    if not state or not oauth_state or not secrets.compare_digest(state, oauth_state):
        logger.warning("[oauth] google callback state mismatch")
        return failure

    try:
        user = await FederatedAuthenticator(store, oauth).authenticate(FederatedCredentials(code))
    except AppError as e:
        logger.warning("[oauth] google sign-in failed: %s", e)
        return failure

    token = tokens.issue(str(user.id), user.email)
    success = RedirectResponse(f"{app_url}?{urlencode({'token': token})}", status_code=status.HTTP_302_FOUND)
    success.delete_cookie(OAUTH_STATE_COOKIE)
    _set_auth_cookie(success, token, tokens)
    return success

@router.post("/logout")
async def logout(response: Response):
    """
    Clear the auth cookie.

    Note:
        Tokens are stateless; a copy held elsewhere stays valid until it expires.
    """
    response.delete_cookie(settings.auth_cookie_name)
    return {"success": True, "message": "Logged out successfully"}

@router.get("/verify")
async def verify(
    user: User = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    """
    Return the caller resolved from the cookie or bearer token.

    Error codes:
        - AUTH_REQUIRED / AUTH_INVALID_TOKEN / AUTH_TOKEN_EXPIRED (401)
        - AUTH_USER_NOT_FOUND (404): The account was deleted after the token was issued
    """
    subscription = await ledger.get_for_user(user)
    return {"success": True, "data": {"user": user_to_dict(user, subscription)}}

@router.post("/change-password")
async def change_password(
    body: ChangePasswordIn,
    user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    await store.change_password(user, body.currentPassword, body.newPassword)
    return {"success": True, "data": {"ok": True}}
