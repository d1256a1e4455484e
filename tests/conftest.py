"""Pytest configuration and fixtures."""

import json
from typing import Any, Callable, Generator, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from intershop_mcp.clients import IntershopClient
from intershop_mcp.config import get_settings
from intershop_mcp.server.main import create_app
from intershop_mcp.utils.http_client import RetryClient, SlidingWindowRateLimiter

ICM_BASE_URL = "https://icm.test/INTERSHOP/rest/WFS/demo-site/-"
ICM_IMAGE_HOST = "https://icm.test"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def sku_params(request: httpx.Request) -> List[str]:
    return request.url.params.get_list("sku")


def decode_body(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Re-read settings around each test so env changes do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_retry_client(clock: FakeClock, sleeper: RecordingSleep):
    """Factory for retry clients backed by an ``httpx.MockTransport``."""

    def factory(handler: Handler, max_requests: int = 60, max_attempts: Optional[int] = None) -> RetryClient:
        return RetryClient(
            rate_limiter=SlidingWindowRateLimiter(max_requests, 60.0, clock=clock),
            timeout=5.0,
            max_attempts=max_attempts or 3,
            backoff_base=1.0,
            transport=httpx.MockTransport(handler),
            sleep=sleeper,
        )

    return factory


@pytest.fixture
def make_intershop_client(make_retry_client):
    """Factory for Intershop clients talking to a mocked ICM."""

    def factory(handler: Handler, **retry_options: Any) -> IntershopClient:
        return IntershopClient(
            base_url=ICM_BASE_URL,
            retry_client=make_retry_client(handler, **retry_options),
            image_host=ICM_IMAGE_HOST,
        )

    return factory


@pytest.fixture
def use_intershop(monkeypatch, make_intershop_client):
    """Route the catalog and basket tools to a mocked ICM backend."""

    def install(handler: Handler) -> IntershopClient:
        client = make_intershop_client(handler)
        monkeypatch.setattr("intershop_mcp.tools.catalog_tools.get_intershop_client", lambda: client)
        monkeypatch.setattr("intershop_mcp.tools.basket_tools.get_intershop_client", lambda: client)
        return client

    return install


@pytest.fixture
def use_integrations(monkeypatch, make_retry_client):
    """Route the integration tools through a mocked transport."""

    def install(handler: Handler) -> RetryClient:
        retry_client = make_retry_client(handler)
        monkeypatch.setattr(
            "intershop_mcp.tools.integration_tools.get_integration_retry_client",
            lambda: retry_client,
        )
        return retry_client

    return install


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client on a fresh app, so rate limit state starts empty."""
    with TestClient(create_app()) as client:
        yield client


@pytest.fixture
def sample_product() -> dict:
    """Product detail payload in the ICM v1 layout."""
    return {
        "sku": "201807231-01",
        "productName": "Surface Pro 4",
        "shortDescription": "<p>Tablet <b>and</b> laptop</p>",
        "longDescription": "<div><h2>Overview</h2><p>Powerful.</p></div>",
        "manufacturer": "Microsoft",
        "inStock": True,
        "availability": True,
        "readyForShipmentMin": 1,
        "readyForShipmentMax": 3,
        "listPrice": {"value": 999.0, "currency": "USD"},
        "salePrice": {"value": 899.0, "currency": "USD"},
        "attributes": [
            {"name": "Color", "type": "String", "value": "Silver"},
            {"name": "Weight", "type": "Double", "value": 0.77},
        ],
        "images": [
            {
                "effectiveUrl": "/static/surface-S.jpg",
                "typeID": "S",
                "viewID": "front",
                "imageActualWidth": 110,
                "imageActualHeight": 110,
                "primaryImage": True,
            }
        ],
        "defaultCategory": {"categoryPath": [{"id": "Computers"}, {"id": "Tablets"}]},
    }
