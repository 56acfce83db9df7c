"""
Per-IP limits: tight windows on login/register and image generation, the
default window on every other route, all reported as 429 RATE_LIMITED.
"""
import pytest
from limits import parse

from app.api.v1.deps import get_image_service
from app.config import settings
from app.core.rate_limit import AI_LIMIT, AUTH_LIMIT
from app.main import app
from app.models.enums import Plan


pytestmark = pytest.mark.asyncio


class _Images:
    def __init__(self):
        self.calls = 0

    async def generate(self, prompt, size="1024x1024"):
        self.calls += 1
        return "https://img.test/generated.png"


def _assert_rate_limited(resp):
    body = resp.json()
    assert resp.status_code == 429
    assert body["success"] is False
    assert body["error"]["code"] == "RATE_LIMITED"
    assert "limit" in body["error"]["details"]


async def test_login_attempts_are_limited(client, rate_limits):
    allowed = parse(AUTH_LIMIT).amount
    for _ in range(allowed):
        resp = await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "wrong-pass"})
        assert resp.status_code == 401

    resp = await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "wrong-pass"})
    _assert_rate_limited(resp)


async def test_register_has_its_own_window(client, rate_limits):
    for _ in range(parse(AUTH_LIMIT).amount):
        await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "wrong-pass"})

    resp = await client.post(
        "/api/v1/auth/register", json={"email": "fresh@example.com", "password": "Password123", "name": "Fresh"}
    )
    assert resp.status_code == 201


async def test_image_generation_is_limited(client, rate_limits, create_user, auth_header_factory):
    images = _Images()
    app.dependency_overrides[get_image_service] = lambda: images
    user, password = await create_user(plan=Plan.PREMIUM)
    headers = await auth_header_factory(user.email, password)

    allowed = parse(AI_LIMIT).amount
    for _ in range(allowed):
        resp = await client.post("/api/v1/ai/generate-image", json={"prompt": "a cat"}, headers=headers)
        assert resp.status_code == 200

    resp = await client.post("/api/v1/ai/generate-image", json={"prompt": "a cat"}, headers=headers)
    _assert_rate_limited(resp)
    assert images.calls == allowed


async def test_default_limit_covers_other_routes(client, rate_limits):
    for _ in range(parse(settings.rate_limit_default).amount):
        assert (await client.get("/api/v1/subscription/plans")).status_code == 200

    _assert_rate_limited(await client.get("/api/v1/subscription/plans"))


async def test_health_is_exempt(client, rate_limits):
    for _ in range(parse(settings.rate_limit_default).amount + 1):
        assert (await client.get("/api/health")).status_code == 200


async def test_limits_off_by_default_in_tests(client):
    for _ in range(parse(AUTH_LIMIT).amount + 1):
        resp = await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "wrong-pass"})
        assert resp.status_code == 401
