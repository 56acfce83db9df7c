from fastapi import APIRouter, Depends

from app.api.v1.deps import get_capture_flow, get_current_user
from app.api.v1.serializers import payment_to_dict, subscription_to_dict
from app.models.user import User
from app.schemas.payment import CaptureOrderIn, CreateOrderIn
from app.services.payments import PaymentCaptureFlow

router = APIRouter(prefix="/payment", tags=["payment"])

@router.post("/create-order")
async def create_order(
    body: CreateOrderIn,
    user: User = Depends(get_current_user),
    flow: PaymentCaptureFlow = Depends(get_capture_flow),
):
    """
    Create a PayPal order for a paid plan and return the buyer approval URL.

    Error codes:
        - VALIDATION_ERROR: Unknown or free plan, or amount not matching the plan price
        - PAYMENT_PROVIDER_ERROR (500): PayPal unreachable or rejected the request
    """
    order = await flow.create_order(user, body.plan, body.amount)
    return {"success": True, "data": {"orderId": order.order_id, "approvalUrl": order.approval_url}}

@router.post("/capture-order")
async def capture_order(
    body: CaptureOrderIn,
    user: User = Depends(get_current_user),
    flow: PaymentCaptureFlow = Depends(get_capture_flow),
):
    """
    Capture an approved order and grant the plan.

    The subscription update and the payment record are written in one
    transaction, and only when PayPal reports the capture as COMPLETED.

    Error codes:
        - PAYMENT_NOT_COMPLETED (400): PayPal returned any other status; nothing changed
        - PAYMENT_PROVIDER_ERROR (500): PayPal unreachable or rejected the request
    """
    subscription, payment = await flow.capture_order(user, body.orderId, body.plan)
    return {
        "success": True,
        "message": "Payment successful",
        "data": {
            "subscription": subscription_to_dict(subscription),
            "payment": payment_to_dict(payment),
        },
    }

@router.get("/history")
async def payment_history(
    user: User = Depends(get_current_user),
    flow: PaymentCaptureFlow = Depends(get_capture_flow),
):
    payments = await flow.history(user)
    return {"success": True, "data": {"payments": [payment_to_dict(p) for p in payments]}}
