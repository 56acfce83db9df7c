from fastapi import APIRouter, Depends, Response

from app.api.v1.deps import get_credential_store, get_current_user, get_ledger
from app.api.v1.serializers import user_to_dict
from app.config import settings
from app.models.user import User
from app.schemas.user import ProfileUpdateIn
from app.services.credentials import CredentialStore
from app.services.ledger import SubscriptionLedger

router = APIRouter(prefix="/user", tags=["user"])

@router.get("/profile")
async def get_profile(
    user: User = Depends(get_current_user),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    subscription = await ledger.get_for_user(user)
    payments = await ledger.payments_for(user)
    data = user_to_dict(user, subscription)
    data["stats"] = {"payments": len(payments)}
    return {"success": True, "data": {"user": data}}

@router.put("/profile")
async def update_profile(
    body: ProfileUpdateIn,
    user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    """Update display name and/or avatar URL."""
    user = await store.update_profile(user, name=body.name, avatar=body.avatar)
    subscription = await ledger.get_for_user(user)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": {"user": user_to_dict(user, subscription)},
    }

@router.delete("/account")
async def delete_account(
    response: Response,
    user: User = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Delete the caller's account, subscription and payment history, and clear
    the auth cookie. Tokens issued earlier now resolve to AUTH_USER_NOT_FOUND.
    """
    await store.delete(user)
    response.delete_cookie(settings.auth_cookie_name)
    return {"success": True, "message": "Account deleted successfully"}
