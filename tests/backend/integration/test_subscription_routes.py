import pytest

from app.models.enums import Plan


pytestmark = pytest.mark.asyncio


async def test_plans_are_public(client):
    resp = await client.get("/api/v1/subscription/plans")
    body = resp.json()
    assert resp.status_code == 200
    assert [p["id"] for p in body["data"]["plans"]] == ["FREE", "BASIC", "PREMIUM", "ENTERPRISE"]
    assert body["data"]["currentPlan"] is None


async def test_plans_name_current_plan_when_signed_in(client, create_user, auth_header_factory):
    user, password = await create_user(plan=Plan.BASIC)
    headers = await auth_header_factory(user.email, password)

    resp = await client.get("/api/v1/subscription/plans", headers=headers)
    assert resp.json()["data"]["currentPlan"] == "BASIC"


async def test_plans_ignore_bad_token(client):
    resp = await client.get("/api/v1/subscription/plans", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 200
    assert resp.json()["data"]["currentPlan"] is None


async def test_current_subscription(client, fake_paypal, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    resp = await client.get("/api/v1/subscription/current", headers=headers)
    data = resp.json()["data"]
    assert resp.status_code == 200
    assert data["subscription"]["plan"] == "FREE"
    assert data["payments"] == []

    await client.post(
        "/api/v1/payment/capture-order", json={"orderId": "ORDER-C1", "plan": "PREMIUM"}, headers=headers
    )
    data = (await client.get("/api/v1/subscription/current", headers=headers)).json()["data"]
    assert data["subscription"]["plan"] == "PREMIUM"
    assert len(data["payments"]) == 1


async def test_update_rejects_upgrade_without_payment(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    resp = await client.post("/api/v1/subscription/update", json={"plan": "ENTERPRISE"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert resp.json()["error"]["details"] == {"currentPlan": "FREE", "requestedPlan": "ENTERPRISE"}


async def test_update_downgrades(client, create_user, auth_header_factory):
    user, password = await create_user(plan=Plan.ENTERPRISE)
    headers = await auth_header_factory(user.email, password)

    resp = await client.post("/api/v1/subscription/update", json={"plan": "BASIC"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["subscription"]["plan"] == "BASIC"


async def test_update_rejects_unknown_plan(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    resp = await client.post("/api/v1/subscription/update", json={"plan": "GOLD"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_cancel(client, create_user, auth_header_factory):
    user, password = await create_user(plan=Plan.PREMIUM)
    headers = await auth_header_factory(user.email, password)

    resp = await client.post("/api/v1/subscription/cancel", headers=headers)
    sub = resp.json()["data"]["subscription"]
    assert resp.status_code == 200
    assert sub["status"] == "CANCELED"
    assert sub["cancelAtPeriodEnd"] is True
    # Plan is kept until the period ends
    assert sub["plan"] == "PREMIUM"
