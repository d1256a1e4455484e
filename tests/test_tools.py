"""Tests for MCP tools."""

import json

import httpx
import pytest

from intershop_mcp.clients import GraphQLError
from intershop_mcp.config import get_settings
from intershop_mcp.tools import (
    ToolError,
    advanced_product_search,
    call_custom_api,
    get_categories,
    get_category_products,
    get_product_details,
    get_similar_products,
    get_weather,
    graphql_query,
    manage_basket,
    process_data,
    query_database,
    search_products,
    start_checkout,
)
from intershop_mcp.utils.database import DatabaseError

from .conftest import decode_body, json_response, sku_params

API_KEY_VARS = ("WEATHER_API_KEY", "RAPIDAPI_KEY", "NEWS_API_KEY", "CUSTOM_API_KEY")


@pytest.fixture
def set_env(monkeypatch):
    """Set API key variables and reload settings."""
    for name in API_KEY_VARS:
        monkeypatch.delenv(name, raising=False)

    def apply(**values):
        for name, value in values.items():
            monkeypatch.setenv(name, value)
        get_settings.cache_clear()

    apply()
    return apply


def catalog_listing(count: int, total: int = 42) -> dict:
    return {
        "total": total,
        "elements": [
            {
                "sku": f"P{n}",
                "productName": f"Product {n}",
                "shortDescription": f"<p>Nice <b>product</b> {n}</p>",
                "inStock": n % 2 == 0,
                "images": [{"effectiveUrl": f"/img/P{n}.jpg"}],
            }
            for n in range(count)
        ],
    }


def catalog_handler(listing: dict, calls: list):
    """Serves a product listing and prices every requested SKU."""

    def handler(request):
        calls.append(request)
        if request.url.path.endswith("/productprices"):
            return json_response(
                [{"sku": sku, "salePrice": {"value": 10, "currency": "USD"}} for sku in sku_params(request)]
            )
        return json_response(listing)

    return handler


class TestCatalogTools:
    """Product search, details and categories."""

    @pytest.mark.asyncio
    async def test_search_products_summarizes_top_five(self, use_intershop):
        calls = []
        use_intershop(catalog_handler(catalog_listing(7), calls))

        result = await search_products("tablet", limit=10)

        search, bulk = calls
        assert search.url.path.endswith("/products")
        assert search.url.params["searchTerm"] == "tablet"
        assert search.url.params["limit"] == "10"
        assert search.url.params["allImages"] == "true"
        assert sku_params(bulk) == ["P0", "P1", "P2", "P3", "P4"]

        assert result["total"] == 42
        assert result["count"] == 7
        assert len(result["products"]) == 5
        first = result["products"][0]
        assert first["sku"] == "P0"
        assert first["name"] == "Product 0"
        assert first["description"] == "Nice product 0"
        assert first["price"]["sale_price"]["formatted"] == "USD 10.00"
        assert first["image"] == "/img/P0.jpg"
        assert result["search_parameters"]["query"] == "tablet"

    @pytest.mark.asyncio
    async def test_search_products_by_category(self, use_intershop):
        calls = []
        use_intershop(catalog_handler(catalog_listing(2, total=2), calls))

        result = await search_products(category="Computers", limit=500)

        assert calls[0].url.path.endswith("/categories/Computers/products")
        assert calls[0].url.params["limit"] == "100"
        assert result["search_parameters"]["limit"] == 100
        assert len(result["products"]) == 2

    @pytest.mark.asyncio
    async def test_bulk_failure_keeps_listing(self, use_intershop):
        def handler(request):
            if request.url.path.endswith("/products"):
                return json_response(catalog_listing(1))
            return httpx.Response(500)

        use_intershop(handler)

        result = await search_products("x")

        assert result["products"][0]["sku"] == "P0"
        assert result["products"][0]["price"] is None

    @pytest.mark.asyncio
    async def test_bulk_failure_falls_back_to_listing_price(self, use_intershop):
        listing = catalog_listing(1)
        listing["elements"][0]["price"] = {"value": 12, "currency": "USD"}

        def handler(request):
            if request.url.path.endswith("/products"):
                return json_response(listing)
            return httpx.Response(500)

        use_intershop(handler)

        result = await search_products("x")

        assert result["products"][0]["price"]["sale_price"]["formatted"] == "USD 12.00"

    @pytest.mark.asyncio
    async def test_advanced_search_filters(self, use_intershop):
        calls = []
        use_intershop(catalog_handler(catalog_listing(0, total=0), calls))

        result = await advanced_product_search(
            query="camera", category="Cameras", min_price=100, max_price=900, brand="Sony", sort_by="name-asc"
        )

        params = calls[0].url.params
        assert params["searchTerm"] == "camera"
        assert params["categoryId"] == "Cameras"
        assert params["priceFrom"] == "100"
        assert params["priceTo"] == "900"
        assert params["manufacturer"] == "Sony"
        assert params["sorting"] == "name-asc"
        assert result["products"] == []
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_advanced_search_rejects_inverted_range(self):
        with pytest.raises(ToolError):
            await advanced_product_search(min_price=50, max_price=10)

    @pytest.mark.asyncio
    async def test_get_product_details(self, use_intershop, sample_product):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response(sample_product)

        use_intershop(handler)

        result = await get_product_details("201807231-01")

        assert len(calls) == 1
        assert calls[0].url.path.endswith("/products/201807231-01")
        assert calls[0].url.params["extended"] == "true"
        assert result["name"] == "Surface Pro 4"
        assert result["description"] == "Tablet and laptop"
        assert result["long_description"] == "Overview Powerful."
        assert result["price"]["sale_price"]["formatted"] == "USD 899.00"
        assert result["price"]["list_price"]["formatted"] == "USD 999.00"
        assert result["availability"]["ready_for_shipment"] == "1-3 days"
        assert result["attributes"]["Weight"] == {"type": "Double", "value": 0.77}
        assert result["images"][0]["url"] == "https://icm.test/static/surface-S.jpg"
        assert result["images"][0]["size"] == "110x110"
        assert result["images"][0]["is_primary"] is True
        assert result["manufacturer"] == "Microsoft"
        assert result["categories"] == [{"id": "Computers"}, {"id": "Tablets"}]

    @pytest.mark.asyncio
    async def test_get_product_details_uses_bulk_price(self, use_intershop, sample_product):
        product = {k: v for k, v in sample_product.items() if k not in ("listPrice", "salePrice")}

        def handler(request):
            if request.url.path.endswith("/productprices"):
                return json_response({"data": [{"prices": {"SalePrice": [{"gross": {"value": 1, "currency": "USD"}}]}}]})
            return json_response(product)

        use_intershop(handler)

        result = await get_product_details("201807231-01")

        assert result["price"]["sale_price"]["formatted"] == "USD 1.00"

    @pytest.mark.asyncio
    async def test_get_product_details_requires_sku(self):
        with pytest.raises(ToolError):
            await get_product_details("")

    @pytest.mark.asyncio
    async def test_get_categories(self, use_intershop):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return json_response([{"id": "Computers"}])

        use_intershop(handler)

        assert await get_categories() == {"categories": [{"id": "Computers"}]}
        assert (await get_categories("Computers"))["category"] == [{"id": "Computers"}]
        assert paths[0].endswith("/categories")
        assert paths[1].endswith("/categories/Computers")

    @pytest.mark.asyncio
    async def test_get_category_products(self, use_intershop):
        calls = []
        use_intershop(catalog_handler(catalog_listing(3, total=3), calls))

        result = await get_category_products("Tablets", limit=3, offset=3)

        assert calls[0].url.params["offset"] == "3"
        assert result["search_parameters"] == {"category": "Tablets", "limit": 3, "offset": 3}
        assert result["total"] == 3

    @pytest.mark.asyncio
    async def test_get_similar_products(self, use_intershop):
        calls = []
        use_intershop(catalog_handler(catalog_listing(2), calls))

        result = await get_similar_products("P9")

        assert calls[0].url.path.endswith("/products/P9/recommendations")
        assert result["sku"] == "P9"
        assert result["count"] == 2


class TestBasketTools:
    """Basket actions and checkout."""

    @pytest.mark.asyncio
    async def test_create_basket(self, use_intershop):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({"data": {"id": "b-1"}})

        use_intershop(handler)

        result = await manage_basket("create")

        assert calls[0].method == "POST"
        assert calls[0].url.path.endswith("/baskets")
        assert result == {"action": "create", "basket_id": "b-1", "status": "new"}

    @pytest.mark.asyncio
    async def test_add_product(self, use_intershop):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({"infos": []})

        use_intershop(handler)

        result = await manage_basket("add_product", basket_id="b-1", sku="1727541", quantity=2)

        assert calls[0].url.path.endswith("/baskets/b-1/items")
        assert decode_body(calls[0]) == {"sku": "1727541", "quantity": 2}
        assert calls[0].headers["Content-Type"] == "application/json"
        assert result["quantity"] == 2

    @pytest.mark.asyncio
    async def test_view_basket(self, use_intershop):
        basket = {
            "data": {
                "id": "b-1",
                "lineItems": [
                    {
                        "product": "1727541",
                        "productName": "HP Compaq LA2006x",
                        "quantity": {"value": 2, "unit": ""},
                        "singleBasePrice": {"value": 219, "currency": "USD"},
                    }
                ],
                "totals": {"grandTotal": {"value": 438, "currency": "USD"}},
            }
        }
        use_intershop(lambda request: json_response(basket))

        result = await manage_basket("view", basket_id="b-1")

        assert result["basket_id"] == "b-1"
        assert result["item_count"] == 1
        assert result["items"][0]["sku"] == "1727541"
        assert result["items"][0]["quantity"] == 2
        assert result["items"][0]["price"]["sale_price"]["formatted"] == "USD 219.00"
        assert result["total"]["sale_price"]["formatted"] == "USD 438.00"

    @pytest.mark.asyncio
    async def test_update_and_remove(self, use_intershop):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(204)

        use_intershop(handler)

        await manage_basket("update", basket_id="b-1", item_id="i-1", quantity=3)
        removed = await manage_basket("remove", basket_id="b-1", item_id="i-1")

        assert calls[0].method == "PUT"
        assert decode_body(calls[0]) == {"quantity": 3}
        assert calls[1].method == "DELETE"
        assert calls[1].url.path.endswith("/baskets/b-1/items/i-1")
        assert removed["result"] == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"action": "destroy", "basket_id": "b-1"},
            {"action": "view"},
            {"action": "add_product", "basket_id": "b-1"},
            {"action": "add_product", "basket_id": "b-1", "sku": "A", "quantity": 0},
            {"action": "remove", "basket_id": "b-1"},
        ],
    )
    async def test_invalid_arguments(self, use_intershop, kwargs):
        def handler(request):
            raise AssertionError("no request expected")

        use_intershop(handler)

        with pytest.raises(ToolError):
            await manage_basket(**kwargs)

    @pytest.mark.asyncio
    async def test_start_checkout(self, use_intershop):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({"data": {"status": "checkout"}})

        use_intershop(handler)

        result = await start_checkout("b-1")

        assert calls[0].url.path.endswith("/baskets/b-1/checkout")
        assert result["checkout"] == {"data": {"status": "checkout"}}


class TestIntegrationTools:
    """Custom REST, weather and GraphQL tools."""

    @pytest.mark.asyncio
    async def test_call_custom_api_injects_keys(self, set_env, use_integrations):
        set_env(WEATHER_API_KEY="weather-key", CUSTOM_API_KEY="custom-key")
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({"temp": 21})

        use_integrations(handler)

        endpoint = "https://api.openweathermap.org/data/2.5/weather?q=Berlin"
        result = await call_custom_api(endpoint)

        request = calls[0]
        assert request.url.params["appid"] == "weather-key"
        assert request.url.params["q"] == "Berlin"
        assert request.headers["Authorization"] == "Bearer custom-key"
        assert result == {"status": 200, "endpoint": endpoint, "response": {"temp": 21}}

    @pytest.mark.asyncio
    async def test_call_custom_api_rapidapi_header(self, set_env, use_integrations):
        set_env(RAPIDAPI_KEY="rapid-key")
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, text="ok")

        use_integrations(handler)

        result = await call_custom_api(
            "https://example.p.rapidapi.com/items",
            method="post",
            headers={"X-Trace": "1"},
            body='{"a": 1}',
        )

        request = calls[0]
        assert request.method == "POST"
        assert request.headers["X-RapidAPI-Key"] == "rapid-key"
        assert request.headers["X-Trace"] == "1"
        assert "Authorization" not in request.headers
        assert json.loads(request.content) == {"a": 1}
        assert result["response"] == "ok"

    @pytest.mark.asyncio
    async def test_call_custom_api_keeps_caller_authorization(self, set_env, use_integrations):
        set_env(CUSTOM_API_KEY="custom-key")
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({})

        use_integrations(handler)

        await call_custom_api(
            "https://api.test/items",
            headers={"authorization": "Bearer mine", "content-type": "text/plain"},
        )

        request = calls[0]
        assert request.headers.get_list("Authorization") == ["Bearer mine"]
        assert request.headers.get_list("Content-Type") == ["text/plain"]

    @pytest.mark.asyncio
    async def test_call_custom_api_validation(self, set_env):
        with pytest.raises(ToolError):
            await call_custom_api("https://api.test", method="PATCH")
        with pytest.raises(ToolError):
            await call_custom_api("/relative/path")

    @pytest.mark.asyncio
    async def test_get_weather_requires_key(self, set_env):
        with pytest.raises(ToolError):
            await get_weather("Berlin")

    @pytest.mark.asyncio
    async def test_get_weather_forecast(self, set_env, use_integrations):
        set_env(WEATHER_API_KEY="weather-key")
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({"list": []})

        use_integrations(handler)

        result = await get_weather("Berlin", forecast_days=2)

        params = calls[0].url.params
        assert calls[0].url.path == "/data/2.5/forecast"
        assert params["cnt"] == "16"
        assert params["appid"] == "weather-key"
        assert params["units"] == "metric"
        assert result == {"city": "Berlin", "forecast": {"list": []}}

    @pytest.mark.asyncio
    async def test_graphql_query(self, use_integrations):
        calls = []

        def handler(request):
            calls.append(request)
            return json_response({"data": {"shop": {"name": "inTRONICS"}}})

        use_integrations(handler)

        result = await graphql_query("https://gql.test/graphql", "{ shop { name } }", {"id": 1})

        assert decode_body(calls[0]) == {"query": "{ shop { name } }", "variables": {"id": 1}}
        assert result == {"data": {"shop": {"name": "inTRONICS"}}}

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self, use_integrations):
        use_integrations(lambda request: json_response({"errors": [{"message": "bad field"}]}))

        with pytest.raises(GraphQLError) as exc_info:
            await graphql_query("https://gql.test/graphql", "{ nope }")

        assert exc_info.value.errors == [{"message": "bad field"}]


class TestDataTools:
    """Database and data processing tools."""

    @pytest.mark.asyncio
    async def test_query_database(self):
        result = await query_database("SELECT sku, price FROM products WHERE price > ? ORDER BY price", [500])

        assert result["row_count"] == 2
        assert [row["sku"] for row in result["rows"]] == ["201807231-01", "4818001"]
        assert result["params"] == [500]

    @pytest.mark.asyncio
    async def test_query_database_invalid_sql(self):
        with pytest.raises(DatabaseError):
            await query_database("SELECT * FROM missing_table")

    @pytest.mark.asyncio
    async def test_filter(self):
        data = json.dumps([{"name": "Surface", "brand": "Microsoft"}, {"name": "Alpha", "brand": "Sony"}])

        result = await process_data(data, "filter", {"field": "brand", "contains": "micro"})

        assert result == {"operation": "filter", "result": [{"name": "Surface", "brand": "Microsoft"}]}

    @pytest.mark.asyncio
    async def test_transform_keeps_fields(self):
        result = await process_data('[{"a": 1, "b": 2}]', "transform", {"fields": ["a"]})

        assert result["result"] == [{"a": 1, "processed": True}]

    @pytest.mark.asyncio
    async def test_transform_single_object(self):
        result = await process_data('{"a": 1}', "transform")

        assert result["result"] == {"a": 1, "processed": True}

    @pytest.mark.asyncio
    async def test_aggregate(self):
        data = '[{"price": 10}, {"price": 20}, {"price": "n/a"}, {"other": 1}]'

        result = await process_data(data, "aggregate", {"field": "price"})

        assert result["result"] == {
            "count": 4,
            "field": "price",
            "sum": 30,
            "average": 15.0,
            "min": 10,
            "max": 20,
        }

    @pytest.mark.asyncio
    async def test_validate(self):
        schema = {"required": ["sku"], "types": {"price": "number"}}

        result = await process_data('[{"sku": "A", "price": 1}, {"price": "x"}]', "validate", schema)

        assert result["result"]["valid"] is False
        assert result["result"]["results"][0] == {"valid": True, "errors": []}
        assert len(result["result"]["results"][1]["errors"]) == 2

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        with pytest.raises(ToolError):
            await process_data("{not json", "filter")

    @pytest.mark.asyncio
    async def test_unknown_operation(self):
        with pytest.raises(ToolError):
            await process_data("[]", "sort")
