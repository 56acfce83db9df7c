# app/api/v1/routers/admin.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from tortoise.expressions import Q
from tortoise.functions import Count

from app.api.v1.deps import get_credential_store, get_ledger, require_admin
from app.api.v1.serializers import user_to_dict
from app.core.errors import AppError, ErrorKind
from app.models.enums import PaymentStatus, Role, SubscriptionStatus
from app.models.payment import Payment
from app.models.subscription import Subscription
from app.models.user import User
from app.schemas.admin import AdminRoleUpdateIn
from app.services.credentials import CredentialStore
from app.services.ledger import SubscriptionLedger

# Every route here requires an authenticated ADMIN
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


async def _count_admins() -> int:
    """
    Count the users with role=ADMIN.

    Note:
        Used to prevent demoting or deleting the last admin user.
    """
    return await User.filter(role=Role.ADMIN).count()


async def _get_user_or_404(store: CredentialStore, user_id: str) -> User:
    u = await store.get_by_id(user_id)
    if not u:
        raise AppError(ErrorKind.USER_NOT_FOUND)
    return u


@router.get("/stats")
async def dashboard_stats():
    """
    Dashboard counters: users, active subscriptions, completed revenue and
    active subscriptions grouped by plan.
    """
    total_users = await User.all().count()
    active_subscriptions = await Subscription.filter(status=SubscriptionStatus.ACTIVE).count()
    amounts = await Payment.filter(status=PaymentStatus.COMPLETED).values_list("amount", flat=True)
    total_revenue = sum((Decimal(str(a)) for a in amounts), Decimal("0"))
    by_plan = await (
        Subscription.filter(status=SubscriptionStatus.ACTIVE)
        .annotate(count=Count("id"))
        .group_by("plan")
        .values("plan", "count")
    )
    return {
        "success": True,
        "data": {
            "totalUsers": total_users,
            "totalSubscriptions": active_subscriptions,
            "totalRevenue": str(total_revenue.quantize(Decimal("0.01"))),
            "subscriptionsByPlan": [
                {"plan": getattr(row["plan"], "value", row["plan"]), "count": row["count"]}
                for row in by_plan
            ],
        },
    }


@router.get("/users")
async def list_users(
    search: Optional[str] = Query(default=None, description="Fuzzy search by email/name"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Paginated user list with subscriptions, newest first.
    """
    qs = User.all().order_by("-created_at")
    if search:
        qs = qs.filter(Q(email__icontains=search) | Q(name__icontains=search))

    total = await qs.count()
    rows = await qs.offset((page - 1) * limit).limit(limit)
    subscriptions = {
        s.user_id: s for s in await Subscription.filter(user_id__in=[u.id for u in rows])
    }
    items = [user_to_dict(u, subscriptions.get(u.id)) for u in rows]
    return {
        "success": True,
        "data": {
            "users": items,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "totalPages": (total + limit - 1) // limit,
            },
        },
    }


@router.patch("/users/{user_id}/role")
async def update_user_role(
    user_id: str,
    body: AdminRoleUpdateIn,
    current_admin: User = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
    ledger: SubscriptionLedger = Depends(get_ledger),
):
    """
    Change a user's role. Admins cannot demote themselves and the last admin
    cannot be demoted.
    """
    u = await _get_user_or_404(store, user_id)
    if body.role != u.role:
        if str(current_admin.id) == str(u.id):
            raise AppError(ErrorKind.VALIDATION_ERROR, "Cannot demote yourself",
                           details={"reason": "CANNOT_DEMOTE_SELF"})
        if u.role == Role.ADMIN and await _count_admins() <= 1:
            raise AppError(ErrorKind.VALIDATION_ERROR, "Cannot demote the last admin",
                           details={"reason": "LAST_ADMIN_FORBIDDEN"})
        u.role = body.role
        await u.save()
    subscription = await ledger.get_for_user(u)
    return {"success": True, "data": {"user": user_to_dict(u, subscription)}}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    current_admin: User = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Delete a user with its subscription and payments.
    """
    u = await _get_user_or_404(store, user_id)
    if str(current_admin.id) == str(u.id):
        raise AppError(ErrorKind.VALIDATION_ERROR, "Cannot delete yourself",
                       details={"reason": "CANNOT_DELETE_SELF"})
    if u.role == Role.ADMIN and await _count_admins() <= 1:
        raise AppError(ErrorKind.VALIDATION_ERROR, "Cannot delete the last admin",
                       details={"reason": "LAST_ADMIN_FORBIDDEN"})
    await store.delete(u)
    return {"success": True, "data": {"ok": True}}
