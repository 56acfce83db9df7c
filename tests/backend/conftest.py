import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.api.v1.deps import get_paypal_client
from app.config import settings
from app.core.db import build_tortoise_config, init_db
from app.core.rate_limit import limiter
from app.main import app
from app.models.enums import Plan, Role
from app.models.user import User
from app.services.credentials import CredentialStore
from app.services.ledger import SubscriptionLedger
from app.services.paypal import CapturedOrder, CreatedOrder


TEST_DB_CONFIG = build_tortoise_config("sqlite://:memory:")


async def _init_test_db() -> None:
    """
    Fresh in-memory SQLite schema per test; nothing leaks between tests.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await init_db(TEST_DB_CONFIG)
    await Tortoise.generate_schemas()


class FakePayPal:
    """
    Stand-in for PayPalClient recording calls; capture status and amount are
    configurable. Orders created through it echo their plan back on capture,
    like PayPal's ``custom_id``; unknown order ids carry no plan.
    """

    def __init__(self):
        self.capture_status = "COMPLETED"
        self.capture_amount = Decimal("29.99")
        self.created = []
        self.captured = []
        self._plans = {}

    async def create_order(self, plan, amount, currency="USD"):
        order_id = f"ORDER-{uuid.uuid4().hex[:10].upper()}"
        self.created.append((order_id, plan, amount, currency))
        self._plans[order_id] = plan
        return CreatedOrder(order_id=order_id, approval_url=f"https://paypal.test/checkoutnow?token={order_id}")

    async def capture_order(self, order_id):
        self.captured.append(order_id)
        return CapturedOrder(
            order_id=order_id,
            status=self.capture_status,
            amount=self.capture_amount,
            currency="USD",
            payer_id="PAYER123",
            plan=self._plans.get(order_id),
        )


@pytest.fixture(autouse=True)
def _rate_limits_off():
    """Limits are off by default so tests can log in freely."""
    limiter.enabled = False
    yield
    limiter.enabled = settings.rate_limit_enabled


@pytest.fixture
def rate_limits():
    """Turn per-IP limits on with empty counters for one test."""
    limiter.enabled = True
    limiter.reset()
    yield limiter
    limiter.reset()


@pytest_asyncio.fixture
async def db():
    """Fresh schema without the HTTP client (service-level tests)."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # httpx versions without the lifespan parameter never run lifespan events
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.clear()
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def fake_paypal(client):
    paypal = FakePayPal()
    app.dependency_overrides[get_paypal_client] = lambda: paypal
    return paypal


@pytest_asyncio.fixture
async def store():
    return CredentialStore(SubscriptionLedger())


@pytest_asyncio.fixture
async def create_user(store):
    """
    Factory fixture creating local users (with subscription) directly via the store.
    """

    async def _create_user(
        password: str = "UserPass!23",
        role: Role = Role.USER,
        plan: Plan = Plan.FREE,
    ) -> tuple[User, str]:
        user = await store.create_local(
            f"{uuid.uuid4().hex[:8]}@example.com", password, "Test User", role=role
        )
        if plan is not Plan.FREE:
            subscription = await store.ledger.get_for_user(user)
            subscription.plan = plan
            await subscription.save()
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_admin(create_user):
    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        return await create_user(password=password, role=Role.ADMIN)

    return _create_admin


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["token"]
        # Bearer-only from here on; the cookie jar would otherwise take precedence
        client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
