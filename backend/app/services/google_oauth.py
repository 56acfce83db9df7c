"""
Google OAuth2 authorization-code client (federated login).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from app.config import settings
from app.core.errors import AppError, ErrorKind

logger = logging.getLogger("uvicorn.error")

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


@dataclass(frozen=True)
class FederatedProfile:
    provider: str
    provider_id: str
    email: str
    display_name: Optional[str]
    avatar_url: Optional[str]


class GoogleOAuthClient:
    provider = "google"

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise AppError(ErrorKind.FEDERATED_LOGIN_UNAVAILABLE)

    def authorization_url(self, state: str) -> str:
        """Consent screen URL requesting the profile and email scopes."""
        self._require_configured()
        query = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid profile email",
            "state": state,
            "prompt": "select_account",
        }
        return f"{AUTHORIZE_URL}?{urlencode(query)}"

    async def fetch_profile(self, code: str) -> FederatedProfile:
        """
        Exchange an authorization code and load the user's profile.

        Raises:
            AppError(INVALID_CREDENTIALS): Code rejected, or no verified email on the account
            AppError(UPSTREAM_ERROR): Google unreachable or returned garbage
        """
        self._require_configured()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                token_resp = await client.post(
                    TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                if token_resp.status_code in (400, 401):
                    logger.warning("[oauth] google rejected code: %s", token_resp.text)
                    raise AppError(ErrorKind.INVALID_CREDENTIALS, "Google sign-in failed")
                token_resp.raise_for_status()
                access_token = token_resp.json()["access_token"]

                info_resp = await client.get(
                    USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
                )
                info_resp.raise_for_status()
                info = info_resp.json()
        except AppError:
            raise
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("[oauth] google profile fetch failed: %r", e)
            raise AppError(ErrorKind.UPSTREAM_ERROR, "Google sign-in failed")

        email = info.get("email")
        if not info.get("sub") or not email or info.get("email_verified") is False:
            raise AppError(ErrorKind.INVALID_CREDENTIALS, "Google account has no verified email")
        return FederatedProfile(
            provider=self.provider,
            provider_id=str(info["sub"]),
            email=email,
            display_name=info.get("name"),
            avatar_url=info.get("picture"),
        )


def build_google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        redirect_uri=settings.google_callback_url,
    )
