"""
PayPal Orders v2 client.

Each public call opens its own HTTP client and obtains a fresh OAuth2
client-credentials access token; tokens are never cached across calls.
Provider failures are logged here with the raw response body and surface to
callers only as AppError(PAYMENT_PROVIDER_ERROR).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from app.config import settings
from app.core.errors import AppError, ErrorKind

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class CreatedOrder:
    order_id: str
    approval_url: Optional[str]


@dataclass(frozen=True)
class CapturedOrder:
    order_id: str
    status: str
    amount: Decimal
    currency: str
    payer_id: Optional[str]
    plan: Optional[str] = None  # custom_id echoed back by PayPal, set at order creation

    @property
    def completed(self) -> bool:
        return self.status == "COMPLETED"


class PayPalClient:
    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        api_base: str,
        timeout: float = 15.0,
        return_base_url: str = "http://localhost:3000",
        brand_name: str = "Brainwave",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.return_base_url = return_base_url.rstrip("/")
        self.brand_name = brand_name
        self._transport = transport  # httpx.MockTransport in tests

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.api_base, timeout=self.timeout, transport=self._transport)

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        if not self.client_id or not self.client_secret:
            logger.error("[paypal] PAYPAL_CLIENT_ID / PAYPAL_CLIENT_SECRET not configured")
            raise AppError(ErrorKind.PAYMENT_PROVIDER_ERROR)
        resp = await client.post(
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        resp.raise_for_status()
        token = resp.json().get("access_token")
        if not token:
            raise ValueError("access_token missing from PayPal token response")
        return token

    async def create_order(self, plan: str, amount: Decimal, currency: str = "USD") -> CreatedOrder:
        """
        Create a CAPTURE-intent order and return its id and buyer approval URL.
        """
        order = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "amount": {"currency_code": currency, "value": f"{amount:.2f}"},
                    "description": f"{self.brand_name} {plan} Plan Subscription",
                    "custom_id": plan,
                }
            ],
            "application_context": {
                "return_url": f"{self.return_base_url}/payment/success",
                "cancel_url": f"{self.return_base_url}/payment/cancel",
                "brand_name": self.brand_name,
                "user_action": "PAY_NOW",
            },
        }
        try:
            async with self._client() as client:
                token = await self._access_token(client)
                resp = await client.post(
                    "/v2/checkout/orders",
                    json=order,
                    headers={"Authorization": f"Bearer {token}"},
                )
                resp.raise_for_status()
                body = resp.json()
            approval_url = next(
                (link.get("href") for link in body.get("links", []) if link.get("rel") in ("approve", "payer-action")),
                None,
            )
            return CreatedOrder(order_id=body["id"], approval_url=approval_url)
        except AppError:
            raise
        except httpx.HTTPStatusError as e:
            logger.error("[paypal] order creation failed status=%s body=%s", e.response.status_code, e.response.text)
            raise AppError(ErrorKind.PAYMENT_PROVIDER_ERROR, "Failed to create PayPal order")
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.error("[paypal] order creation failed: %r", e)
            raise AppError(ErrorKind.PAYMENT_PROVIDER_ERROR, "Failed to create PayPal order")

    async def capture_order(self, order_id: str) -> CapturedOrder:
        """
        Capture a buyer-approved order. The returned status is PayPal's; callers
        must check ``completed`` before granting anything.
        """
        try:
            async with self._client() as client:
                token = await self._access_token(client)
                resp = await client.post(
                    f"/v2/checkout/orders/{order_id}/capture",
                    json={},
                    headers={"Authorization": f"Bearer {token}"},
                )
                resp.raise_for_status()
                body = resp.json()
            return self._parse_capture(order_id, body)
        except AppError:
            raise
        except httpx.HTTPStatusError as e:
            logger.error("[paypal] capture failed order=%s status=%s body=%s",
                         order_id, e.response.status_code, e.response.text)
            raise AppError(ErrorKind.PAYMENT_PROVIDER_ERROR, "Failed to capture payment")
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError, InvalidOperation) as e:
            logger.error("[paypal] capture failed order=%s: %r", order_id, e)
            raise AppError(ErrorKind.PAYMENT_PROVIDER_ERROR, "Failed to capture payment")

    @staticmethod
    def _parse_capture(order_id: str, body: dict) -> CapturedOrder:
        status = body.get("status", "")
        unit = (body.get("purchase_units") or [{}])[0]
        # The captured amount lives under payments.captures; older payloads only carry unit.amount
        captures = (unit.get("payments") or {}).get("captures") or []
        amount = captures[0]["amount"] if captures else unit.get("amount")
        if status == "COMPLETED" and not amount:
            raise ValueError("completed capture without an amount")
        custom_id = (captures[0].get("custom_id") if captures else None) or unit.get("custom_id")
        return CapturedOrder(
            order_id=body.get("id") or order_id,
            status=status,
            amount=Decimal(amount["value"]) if amount else Decimal("0"),
            currency=amount["currency_code"] if amount else "USD",
            payer_id=(body.get("payer") or {}).get("payer_id"),
            plan=custom_id,
        )


def build_paypal_client() -> PayPalClient:
    return PayPalClient(
        client_id=settings.paypal_client_id,
        client_secret=settings.paypal_client_secret,
        api_base=settings.paypal_api_base,
        timeout=settings.paypal_timeout_seconds,
        return_base_url=settings.app_url,
        brand_name=settings.paypal_brand_name,
    )
