from typing import Optional

from fastapi import APIRouter, Depends

from app.api.v1.deps import get_current_user, get_ledger, optional_current_user
from app.api.v1.serializers import payment_to_dict, subscription_to_dict
from app.models.user import User
from app.schemas.subscription import UpdatePlanIn
from app.services.ledger import SubscriptionLedger
from app.services.plans import list_plans

router = APIRouter(prefix="/subscription", tags=["subscription"])

@router.get("/plans")
async def get_plans(
    user: Optional[User] = Depends(optional_current_user),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    """
    Public plan catalogue. When the caller is signed in, ``currentPlan`` names
    their plan.
    """
    current_plan = None
    if user is not None:
        subscription = await ledger.get_for_user(user)
        current_plan = subscription.plan.value if subscription else None
    return {"success": True, "data": {"plans": list_plans(), "currentPlan": current_plan}}

@router.get("/current")
async def current_subscription(
    user: User = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    """Caller's subscription with its five most recent payments."""
    subscription = await ledger.get_for_user(user)
    payments = await ledger.payments_for(user, limit=5)
    return {
        "success": True,
        "data": {
            "subscription": subscription_to_dict(subscription),
            "payments": [payment_to_dict(p) for p in payments],
        },
    }

@router.post("/update")
async def update_subscription(
    body: UpdatePlanIn,
    user: User = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    """
    Switch to a lower (or the same) plan and start a new 30-day period.

    Error codes:
        - VALIDATION_ERROR: Target plan is higher than the current one (pay through /payment)
    """
    subscription = await ledger.change_plan(user, body.plan)
    return {
        "success": True,
        "message": "Subscription updated successfully",
        "data": {"subscription": subscription_to_dict(subscription)},
    }

@router.post("/cancel")
async def cancel_subscription(
    user: User = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    subscription = await ledger.cancel(user)
    return {
        "success": True,
        "message": "Subscription will be canceled at the end of the billing period",
        "data": {"subscription": subscription_to_dict(subscription)},
    }
