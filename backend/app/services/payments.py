"""
Payment capture flow: PayPal order create/capture handshake and the
capture-to-entitlement transition on the subscription ledger.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import List, Tuple

from app.core.errors import AppError, ErrorKind
from app.models.enums import Plan
from app.models.payment import Payment
from app.models.subscription import Subscription
from app.models.user import User
from app.services.ledger import SubscriptionLedger
from app.services.paypal import CapturedOrder, CreatedOrder, PayPalClient
from app.services.plans import CURRENCY, price_of

logger = logging.getLogger("uvicorn.error")


def parse_paid_plan(raw: str) -> Plan:
    try:
        plan = Plan(str(raw).upper())
    except ValueError:
        raise AppError(ErrorKind.VALIDATION_ERROR, "Invalid plan", details={"plan": raw})
    if plan is Plan.FREE:
        raise AppError(ErrorKind.VALIDATION_ERROR, "The FREE plan cannot be purchased")
    return plan


def parse_amount(raw) -> Decimal:
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise AppError(ErrorKind.VALIDATION_ERROR, "Invalid amount", details={"amount": str(raw)})
    if not amount.is_finite() or amount <= 0:
        raise AppError(ErrorKind.VALIDATION_ERROR, "Amount must be positive", details={"amount": str(raw)})
    return amount.quantize(Decimal("0.01"))


class PaymentCaptureFlow:
    def __init__(self, ledger: SubscriptionLedger, paypal: PayPalClient):
        self.ledger = ledger
        self.paypal = paypal

    async def create_order(self, user: User, plan_name: str, amount_raw) -> CreatedOrder:
        plan = parse_paid_plan(plan_name)
        amount = parse_amount(amount_raw)
        expected = price_of(plan)
        if amount != expected:
            raise AppError(
                ErrorKind.VALIDATION_ERROR,
                f"Amount does not match the {plan.value} plan price",
                details={"plan": plan.value, "expected": str(expected)},
            )
        order = await self.paypal.create_order(plan.value, amount, CURRENCY)
        logger.info("[payment] user=%s created order %s for %s", user.id, order.order_id, plan.value)
        return order

    async def capture_order(self, user: User, order_id: str, plan_name: str) -> Tuple[Subscription, Payment]:
        if not order_id or not str(order_id).strip():
            raise AppError(ErrorKind.VALIDATION_ERROR, "Order ID is required")
        order_id = str(order_id).strip()
        plan = parse_paid_plan(plan_name)

        # Replayed capture (double click, retried request): no second provider call
        existing = await self.ledger.existing_capture(user, order_id)
        if existing is not None:
            return existing

        captured = await self.paypal.capture_order(order_id)
        if not captured.completed:
            logger.warning("[payment] order %s for user=%s not completed (status=%s)",
                           order_id, user.id, captured.status)
            raise AppError(ErrorKind.PAYMENT_NOT_COMPLETED, details={"status": captured.status})
        self._check_capture_matches(user, plan, captured)
        return await self.ledger.apply_capture(user, plan, captured)

    @staticmethod
    def _check_capture_matches(user: User, plan: Plan, captured: CapturedOrder) -> None:
        """
        The plan granted must be the one PayPal charged for: the catalogue
        price in the catalogue currency and, when PayPal echoes it, the plan
        the order was created for.

        Raises:
            AppError(VALIDATION_ERROR): Captured order does not pay for ``plan``
        """
        expected = price_of(plan)
        ordered_plan = str(captured.plan).upper() if captured.plan else None
        if (
            captured.amount == expected
            and captured.currency == CURRENCY
            and ordered_plan in (None, plan.value)
        ):
            return
        # Money was taken but nothing is granted; needs a manual refund or re-capture with the right plan
        logger.error(
            "[payment] order %s for user=%s does not pay for %s (captured %s %s, ordered plan=%s)",
            captured.order_id, user.id, plan.value, captured.amount, captured.currency, ordered_plan,
        )
        raise AppError(
            ErrorKind.VALIDATION_ERROR,
            f"Captured payment does not match the {plan.value} plan",
            details={
                "plan": plan.value,
                "orderedPlan": ordered_plan,
                "expectedAmount": str(expected),
                "capturedAmount": str(captured.amount),
                "currency": captured.currency,
            },
        )

    async def history(self, user: User) -> List[Payment]:
        return await self.ledger.payments_for(user)
