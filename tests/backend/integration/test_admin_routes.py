import pytest

from app.models.enums import Plan, Role
from app.models.payment import Payment
from app.models.subscription import Subscription


pytestmark = pytest.mark.asyncio


async def test_admin_routes_reject_non_admins(client, create_user, auth_header_factory):
    user, password = await create_user(plan=Plan.ENTERPRISE)
    headers = await auth_header_factory(user.email, password)

    for method, path in [
        ("GET", "/api/v1/admin/stats"),
        ("GET", "/api/v1/admin/users"),
        ("DELETE", f"/api/v1/admin/users/{user.id}"),
    ]:
        resp = await client.request(method, path, headers=headers)
        assert resp.status_code == 403, path
        assert resp.json()["error"]["code"] == "FORBIDDEN"


async def test_admin_routes_require_auth(client):
    resp = await client.get("/api/v1/admin/stats")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_REQUIRED"


async def test_admin_stats(client, fake_paypal, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    buyer, buyer_password = await create_user()
    await create_user(plan=Plan.BASIC)

    buyer_headers = await auth_header_factory(buyer.email, buyer_password)
    await client.post(
        "/api/v1/payment/capture-order", json={"orderId": "ORDER-S1", "plan": "PREMIUM"}, headers=buyer_headers
    )

    admin_headers = await auth_header_factory(admin.email, admin_password)
    resp = await client.get("/api/v1/admin/stats", headers=admin_headers)
    data = resp.json()["data"]
    assert resp.status_code == 200
    assert data["totalUsers"] == 3
    assert data["totalSubscriptions"] == 3
    assert data["totalRevenue"] == "29.99"
    by_plan = {row["plan"]: row["count"] for row in data["subscriptionsByPlan"]}
    assert by_plan == {"FREE": 1, "BASIC": 1, "PREMIUM": 1}


async def test_admin_user_management_flow(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    admin_headers = await auth_header_factory(admin.email, admin_password)

    # Create a normal user via public endpoint
    register_resp = await client.post(
        "/api/v1/auth/register",
        json={"email": "member1@example.com", "password": "Member#123", "name": "Member One"},
    )
    user_id = register_resp.json()["data"]["user"]["id"]
    client.cookies.clear()

    list_resp = await client.get("/api/v1/admin/users", headers=admin_headers, params={"search": "member1"})
    body = list_resp.json()["data"]
    assert list_resp.status_code == 200
    assert [u["email"] for u in body["users"]] == ["member1@example.com"]
    assert body["users"][0]["subscription"]["plan"] == "FREE"
    assert body["pagination"] == {"total": 1, "page": 1, "limit": 20, "totalPages": 1}

    promote = await client.patch(f"/api/v1/admin/users/{user_id}/role", headers=admin_headers, json={"role": "ADMIN"})
    assert promote.status_code == 200
    assert promote.json()["data"]["user"]["role"] == "ADMIN"

    bad_role = await client.patch(f"/api/v1/admin/users/{user_id}/role", headers=admin_headers, json={"role": "ROOT"})
    assert bad_role.status_code == 400

    delete_resp = await client.delete(f"/api/v1/admin/users/{user_id}", headers=admin_headers)
    assert delete_resp.status_code == 200
    missing = await client.delete(f"/api/v1/admin/users/{user_id}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "AUTH_USER_NOT_FOUND"


async def test_pagination(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    for _ in range(4):
        await create_user()
    headers = await auth_header_factory(admin.email, admin_password)

    resp = await client.get("/api/v1/admin/users", headers=headers, params={"page": 2, "limit": 2})
    body = resp.json()["data"]
    assert len(body["users"]) == 2
    assert body["pagination"]["total"] == 5
    assert body["pagination"]["totalPages"] == 3


async def test_admin_cannot_demote_or_delete_self(client, create_admin, auth_header_factory):
    admin, admin_password = await create_admin()
    headers = await auth_header_factory(admin.email, admin_password)

    demote = await client.patch(f"/api/v1/admin/users/{admin.id}/role", headers=headers, json={"role": "USER"})
    assert demote.status_code == 400
    assert demote.json()["error"]["details"]["reason"] == "CANNOT_DEMOTE_SELF"

    delete = await client.delete(f"/api/v1/admin/users/{admin.id}", headers=headers)
    assert delete.status_code == 400
    assert delete.json()["error"]["details"]["reason"] == "CANNOT_DELETE_SELF"


async def test_promoted_user_gains_admin_access(client, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    user, password = await create_user()
    admin_headers = await auth_header_factory(admin.email, admin_password)
    user_headers = await auth_header_factory(user.email, password)

    assert (await client.get("/api/v1/admin/stats", headers=user_headers)).status_code == 403
    await client.patch(f"/api/v1/admin/users/{user.id}/role", headers=admin_headers, json={"role": Role.ADMIN.value})
    # Role is read from the store on every request, not from the token
    assert (await client.get("/api/v1/admin/stats", headers=user_headers)).status_code == 200


async def test_admin_delete_removes_subscription_and_payments(client, fake_paypal, create_admin, create_user, auth_header_factory):
    admin, admin_password = await create_admin()
    buyer, buyer_password = await create_user()
    admin_headers = await auth_header_factory(admin.email, admin_password)
    buyer_headers = await auth_header_factory(buyer.email, buyer_password)
    await client.post(
        "/api/v1/payment/capture-order", json={"orderId": "ORDER-GONE", "plan": "PREMIUM"}, headers=buyer_headers
    )
    assert await Payment.filter(paypal_order_id="ORDER-GONE").count() == 1

    resp = await client.delete(f"/api/v1/admin/users/{buyer.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert await Subscription.filter(user_id=buyer.id).count() == 0
    assert await Payment.filter(paypal_order_id="ORDER-GONE").count() == 0
