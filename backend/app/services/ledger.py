"""
Subscription ledger: the single entitlement record per user and its payments.

All writes that must succeed or fail together run inside one Tortoise
transaction on the ledger's connection.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, List, Optional, Tuple

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from app.core.db import DEFAULT_CONNECTION
from app.core.errors import AppError, ErrorKind
from app.core.security import utc_now
from app.models.enums import Plan, PaymentStatus, SubscriptionStatus
from app.models.payment import Payment
from app.models.subscription import Subscription
from app.models.user import User
from app.services.paypal import CapturedOrder
from app.services.plans import BILLING_PERIOD_DAYS

logger = logging.getLogger("uvicorn.error")


class SubscriptionLedger:
    def __init__(
        self,
        connection_name: str = DEFAULT_CONNECTION,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self.connection_name = connection_name
        self.clock = clock

    def _period(self) -> Tuple[dt.datetime, dt.datetime]:
        start = self.clock()
        return start, start + dt.timedelta(days=BILLING_PERIOD_DAYS)

    async def create_default(self, user: User, using_db=None) -> Subscription:
        """FREE/ACTIVE subscription with a fresh 30-day period."""
        start, end = self._period()
        return await Subscription.create(
            using_db=using_db,
            user=user,
            plan=Plan.FREE,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=start,
            current_period_end=end,
            cancel_at_period_end=False,
        )

    async def get_for_user(self, user: User) -> Optional[Subscription]:
        return await Subscription.get_or_none(user_id=user.id)

    async def _require(self, user: User) -> Subscription:
        subscription = await self.get_for_user(user)
        if subscription is None:
            raise AppError(ErrorKind.PLAN_REQUIRED, "No subscription found for this account")
        return subscription

    async def find_payment(self, order_id: str) -> Optional[Payment]:
        return await Payment.get_or_none(paypal_order_id=order_id)

    async def existing_capture(self, user: User, order_id: str) -> Optional[Tuple[Subscription, Payment]]:
        """
        Return the already-recorded capture of ``order_id`` for this user.

        Raises:
            AppError(VALIDATION_ERROR): The order was captured for another account
        """
        payment = await self.find_payment(order_id)
        if payment is None:
            return None
        subscription = await self.get_for_user(user)
        if subscription is None or payment.subscription_id != subscription.id:
            raise AppError(ErrorKind.VALIDATION_ERROR, "Order already captured")
        return subscription, payment

    async def apply_capture(
        self, user: User, plan: Plan, captured: CapturedOrder
    ) -> Tuple[Subscription, Payment]:
        """
        Grant ``plan`` for a new billing period and record the payment, atomically.

        A repeated call with the same provider order id returns the recorded
        pair instead of appending a second payment.
        """
        try:
            async with in_transaction(self.connection_name) as conn:
                subscription = await (
                    Subscription.filter(user_id=user.id).using_db(conn).select_for_update().first()
                )
                if subscription is None:
                    raise AppError(ErrorKind.PLAN_REQUIRED, "No subscription found for this account")

                duplicate = await Payment.filter(paypal_order_id=captured.order_id).using_db(conn).first()
                if duplicate is not None:
                    if duplicate.subscription_id != subscription.id:
                        raise AppError(ErrorKind.VALIDATION_ERROR, "Order already captured")
                    return subscription, duplicate

                start, end = self._period()
                subscription.plan = plan
                subscription.status = SubscriptionStatus.ACTIVE
                subscription.paypal_subscription_id = captured.order_id
                subscription.current_period_start = start
                subscription.current_period_end = end
                subscription.cancel_at_period_end = False
                await subscription.save(using_db=conn)

                payment = await Payment.create(
                    using_db=conn,
                    subscription=subscription,
                    amount=captured.amount,
                    currency=captured.currency,
                    status=PaymentStatus.COMPLETED,
                    paypal_order_id=captured.order_id,
                    paypal_payer_id=captured.payer_id,
                )
        except IntegrityError:
            # A concurrent capture of the same order committed first.
            existing = await self.existing_capture(user, captured.order_id)
            if existing is None:
                raise
            logger.warning("[ledger] duplicate capture of order %s resolved to existing payment", captured.order_id)
            return existing

        logger.info("[ledger] user=%s upgraded to %s via order %s", user.id, plan.value, captured.order_id)
        return subscription, payment

    async def change_plan(self, user: User, plan: Plan) -> Subscription:
        """
        Move to ``plan`` without a payment: downgrades and renewals of the same
        tier only. Upgrades go through the PayPal capture flow.

        Starts a fresh billing period and reactivates a canceled subscription.
        """
        subscription = await self._require(user)
        if plan.level > subscription.plan.level:
            raise AppError(
                ErrorKind.VALIDATION_ERROR,
                f"Upgrading to {plan.value} requires payment",
                details={"currentPlan": subscription.plan.value, "requestedPlan": plan.value},
            )
        start, end = self._period()
        subscription.plan = plan
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.current_period_start = start
        subscription.current_period_end = end
        subscription.cancel_at_period_end = False
        await subscription.save()
        return subscription

    async def cancel(self, user: User) -> Subscription:
        """Cancel at the end of the current billing period."""
        subscription = await self._require(user)
        subscription.status = SubscriptionStatus.CANCELED
        subscription.cancel_at_period_end = True
        await subscription.save()
        return subscription

    async def payments_for(self, user: User, limit: Optional[int] = None) -> List[Payment]:
        subscription = await self.get_for_user(user)
        if subscription is None:
            return []
        query = Payment.filter(subscription_id=subscription.id).order_by("-created_at")
        if limit:
            query = query.limit(limit)
        return await query
