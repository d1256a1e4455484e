"""Tests for the REST client helpers and the Intershop client."""

import httpx
import pytest

from intershop_mcp.clients import RestApiClient, interpolate_url
from intershop_mcp.clients.base import clean_params
from intershop_mcp.utils.http_client import RequestFailed

from .conftest import ICM_BASE_URL, json_response, sku_params


def test_interpolate_url_encodes_values():
    assert interpolate_url("/posts/{id}/comments/{c}", {"id": "a b", "c": "x/y"}) == "/posts/a%20b/comments/x%2Fy"
    assert interpolate_url("/posts") == "/posts"


def test_clean_params():
    assert clean_params({"a": None, "b": True, "c": 0, "d": "x"}) == {"b": "true", "c": 0, "d": "x"}


class TestRestApiClient:
    """Requests through the generic client."""

    @pytest.mark.asyncio
    async def test_request_builds_url_and_headers(self, make_retry_client):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({"id": 1})

        api = RestApiClient(
            "https://jsonplaceholder.test/",
            default_headers={"X-Api": "1"},
            retry_client=make_retry_client(handler),
        )
        result = await api.post("/posts/{id}", {"title": "t"}, {"id": 5})

        request = calls[0]
        assert str(request.url) == "https://jsonplaceholder.test/posts/5"
        assert request.headers["X-Api"] == "1"
        assert request.headers["Content-Type"] == "application/json"
        assert result == {"id": 1}

    @pytest.mark.asyncio
    async def test_failures_propagate(self, make_retry_client):
        api = RestApiClient(
            "https://api.test",
            retry_client=make_retry_client(lambda request: httpx.Response(404), max_attempts=2),
        )

        with pytest.raises(RequestFailed) as exc_info:
            await api.get("/missing")

        assert exc_info.value.attempts == 2


class TestIntershopClient:
    """ICM request shapes."""

    @pytest.mark.asyncio
    async def test_bulk_price_request(self, make_intershop_client):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response([])

        client = make_intershop_client(handler)
        await client.get_product_prices(["A", "B"])

        request = calls[0]
        assert str(request.url).startswith(f"{ICM_BASE_URL}/productprices?")
        assert sku_params(request) == ["A", "B"]
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Accept-Language"] == "en-US,en;q=0.9"

    @pytest.mark.asyncio
    async def test_sku_is_path_encoded(self, make_intershop_client):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({})

        await make_intershop_client(handler).get_product("a/b")

        assert calls[0].url.raw_path.decode().split("?")[0].endswith("/products/a%2Fb")

    def test_extract_product_images(self, make_intershop_client, sample_product):
        client = make_intershop_client(lambda request: json_response({}))
        product = {
            "images": [
                *sample_product["images"],
                {"effectiveUrl": "https://cdn.test/x.jpg", "typeID": "L"},
            ]
        }

        images = client.extract_product_images(product)

        assert images[0]["url"] == "https://icm.test/static/surface-S.jpg"
        assert images[1] == {
            "type": "L",
            "url": "https://cdn.test/x.jpg",
            "size": None,
            "view": None,
            "is_primary": False,
        }

    def test_format_product_attributes_skips_unnamed(self, make_intershop_client):
        client = make_intershop_client(lambda request: json_response({}))

        attributes = client.format_product_attributes({"attributes": [{"value": 1}, {"name": "A", "value": 2}]})

        assert attributes == {"A": {"type": None, "value": 2}}

    @pytest.mark.parametrize(
        "attributes",
        [{"Color": "Silver"}, "Silver", None, ["Silver", 3, None]],
    )
    def test_format_product_attributes_ignores_unexpected_shapes(self, make_intershop_client, attributes):
        client = make_intershop_client(lambda request: json_response({}))

        assert client.format_product_attributes({"attributes": attributes}) == {}
