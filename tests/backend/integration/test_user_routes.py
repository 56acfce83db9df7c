import pytest


pytestmark = pytest.mark.asyncio


async def test_profile_get_and_update(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    resp = await client.get("/api/v1/user/profile", headers=headers)
    data = resp.json()["data"]["user"]
    assert resp.status_code == 200
    assert data["email"] == user.email
    assert data["stats"] == {"payments": 0}
    assert data["subscription"]["plan"] == "FREE"

    upd = await client.put(
        "/api/v1/user/profile",
        json={"name": "Renamed", "avatar": "https://cdn.test/me.png"},
        headers=headers,
    )
    assert upd.status_code == 200
    assert upd.json()["data"]["user"]["name"] == "Renamed"
    assert upd.json()["data"]["user"]["avatar"] == "https://cdn.test/me.png"

    # Omitted fields stay as they were
    partial = await client.put("/api/v1/user/profile", json={"name": "Again"}, headers=headers)
    assert partial.json()["data"]["user"]["avatar"] == "https://cdn.test/me.png"


async def test_profile_rejects_empty_name(client, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)

    resp = await client.put("/api/v1/user/profile", json={"name": ""}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_delete_account(client, fake_paypal, create_user, auth_header_factory):
    user, password = await create_user()
    headers = await auth_header_factory(user.email, password)
    await client.post(
        "/api/v1/payment/capture-order", json={"orderId": "ORDER-DEL", "plan": "PREMIUM"}, headers=headers
    )

    resp = await client.delete("/api/v1/user/account", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    after = await client.get("/api/v1/auth/verify", headers=headers)
    assert after.status_code == 404
    assert after.json()["error"]["code"] == "AUTH_USER_NOT_FOUND"

    login = await client.post("/api/v1/auth/login", json={"email": user.email, "password": password})
    assert login.status_code == 401
