"""
Unit tests for the plan ordering and the plan catalogue.
"""
from decimal import Decimal

import httpx
import pytest

from app.core.errors import AppError, ErrorKind
from app.models.enums import Plan
from app.services.image_generation import ImageGenerationService
from app.services.plans import list_plans, price_of


@pytest.mark.parametrize(
    "current,required,allowed",
    [
        (Plan.FREE, Plan.FREE, True),
        (Plan.FREE, Plan.BASIC, False),
        (Plan.BASIC, Plan.PREMIUM, False),
        (Plan.PREMIUM, Plan.PREMIUM, True),
        (Plan.ENTERPRISE, Plan.PREMIUM, True),
        (Plan.ENTERPRISE, Plan.ENTERPRISE, True),
        (Plan.PREMIUM, Plan.ENTERPRISE, False),
    ],
)
def test_plan_includes(current, required, allowed):
    assert current.includes(required) is allowed


def test_catalogue_is_in_entitlement_order():
    plans = list_plans()
    assert [p["id"] for p in plans] == ["FREE", "BASIC", "PREMIUM", "ENTERPRISE"]
    assert [p["price"] for p in plans] == ["0.00", "9.99", "29.99", "99.99"]
    assert sum(1 for p in plans if p["popular"]) == 1


def test_price_of():
    assert price_of(Plan.PREMIUM) == Decimal("29.99")


class TestImageGeneration:
    @pytest.mark.asyncio
    async def test_generate_returns_first_url(self, monkeypatch):
        def handler(request: httpx.Request):
            assert request.url.path.endswith("/images/generations")
            assert request.headers["Authorization"] == "Bearer sk-test"
            return httpx.Response(200, json={"data": [{"url": "https://img.test/1.png"}]})

        service = ImageGenerationService(transport=httpx.MockTransport(handler))
        monkeypatch.setattr(service, "api_key", "sk-test")
        assert await service.generate("a red fox") == "https://img.test/1.png"

    @pytest.mark.asyncio
    async def test_upstream_failure_maps_to_upstream_error(self, monkeypatch):
        def handler(request: httpx.Request):
            return httpx.Response(500, text="overloaded")

        service = ImageGenerationService(transport=httpx.MockTransport(handler))
        monkeypatch.setattr(service, "api_key", "sk-test")
        with pytest.raises(AppError) as exc:
            await service.generate("a red fox")
        assert exc.value.kind is ErrorKind.UPSTREAM_ERROR

    @pytest.mark.asyncio
    async def test_unconfigured_service(self, monkeypatch):
        service = ImageGenerationService()
        monkeypatch.setattr(service, "api_key", None)
        assert service.is_available() is False
        with pytest.raises(AppError) as exc:
            await service.generate("anything")
        assert exc.value.kind is ErrorKind.UPSTREAM_ERROR
