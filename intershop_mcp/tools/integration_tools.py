"""Generic integration tools: custom REST calls, weather, GraphQL, database, data processing."""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..clients import GraphQLApiClient, WeatherApiClient, get_integration_retry_client
from ..config import get_settings
from ..utils.database import DatabaseClient, validate_data
from ..utils.http_client import parse_response_body
from .errors import ToolError

logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")
DATA_OPERATIONS = ("filter", "transform", "aggregate", "validate")


def apply_api_keys(endpoint: str, headers: httpx.Headers) -> str:
    """Add configured API keys for well-known services.

    Updates ``headers`` in place and returns the possibly extended endpoint.
    A caller-supplied Authorization header, in any letter case, is kept.
    """
    settings = get_settings()
    url = httpx.URL(endpoint)

    if "openweathermap.org" in url.host and settings.WEATHER_API_KEY:
        url = url.copy_set_param("appid", settings.WEATHER_API_KEY)

    if "rapidapi.com" in url.host and settings.RAPIDAPI_KEY:
        headers["X-RapidAPI-Key"] = settings.RAPIDAPI_KEY

    if "newsapi.org" in url.host and settings.NEWS_API_KEY:
        url = url.copy_set_param("apiKey", settings.NEWS_API_KEY)

    if settings.CUSTOM_API_KEY and "Authorization" not in headers:
        headers["Authorization"] = f"Bearer {settings.CUSTOM_API_KEY}"

    return str(url)


async def call_custom_api(
    endpoint: str,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    body: Optional[str] = None,
) -> Dict[str, Any]:
    """Call an arbitrary HTTP API.

    Args:
        endpoint: Absolute URL.
        method: GET, POST, PUT or DELETE.
        headers: Extra request headers.
        body: Request body as a JSON string (ignored for GET).

    Returns:
        Dictionary with the HTTP status, the endpoint and the decoded response.
    """
    method = method.upper()
    if method not in HTTP_METHODS:
        raise ToolError(f"Unsupported HTTP method: {method}")

    if not endpoint.startswith(("http://", "https://")):
        raise ToolError(f"Endpoint must be an absolute http(s) URL: {endpoint}")

    request_headers = httpx.Headers({"Content-Type": "application/json"})
    request_headers.update(headers or {})
    final_endpoint = apply_api_keys(endpoint, request_headers)

    response = await get_integration_retry_client().send(
        final_endpoint,
        method=method,
        headers=request_headers,
        content=body if body and method != "GET" else None,
    )

    return {
        "status": response.status_code,
        "endpoint": endpoint,
        "response": parse_response_body(response),
    }


async def get_weather(city: str, forecast_days: int = 0) -> Dict[str, Any]:
    """Current weather, or a forecast when ``forecast_days`` is positive."""
    settings = get_settings()
    if not settings.WEATHER_API_KEY:
        raise ToolError("WEATHER_API_KEY is not configured")

    client = WeatherApiClient(settings.WEATHER_API_KEY, retry_client=get_integration_retry_client())
    if forecast_days > 0:
        return {"city": city, "forecast": await client.get_forecast(city, min(forecast_days, 5))}
    return {"city": city, "weather": await client.get_current_weather(city)}


async def graphql_query(
    endpoint: str,
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    client = GraphQLApiClient(endpoint, headers, retry_client=get_integration_retry_client())
    return {"data": await client.query(query, variables)}


async def query_database(query: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
    """Run a SQL statement against the simulated demo database.

    Args:
        query: SQL statement with ``?`` placeholders.
        params: Positional query parameters.

    Returns:
        Dictionary with the statement, parameters, rows and counts.
    """
    return await DatabaseClient().query(query, params)


def _load_data(data: Any) -> Any:
    if not isinstance(data, str):
        return data
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        raise ToolError(f"Invalid JSON data: {e}") from e


def _matches(item: Any, options: Dict[str, Any]) -> bool:
    field = options.get("field")
    if field is None:
        return True
    if not isinstance(item, dict) or field not in item:
        return False
    if "equals" in options:
        return item[field] == options["equals"]
    if "contains" in options:
        return str(options["contains"]).lower() in str(item[field]).lower()
    return item[field] is not None


def _aggregate(items: List[Any], field: Optional[str]) -> Dict[str, Any]:
    result: Dict[str, Any] = {"count": len(items)}
    if not field:
        return result

    values = [
        item[field]
        for item in items
        if isinstance(item, dict)
        and isinstance(item.get(field), (int, float))
        and not isinstance(item.get(field), bool)
    ]
    if values:
        result.update(
            field=field,
            sum=sum(values),
            average=round(sum(values) / len(values), 2),
            min=min(values),
            max=max(values),
        )
    return result


async def process_data(
    data: Any,
    operation: str,
    options: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Filter, transform, aggregate or validate JSON records.

    Args:
        data: JSON string (or already decoded list/object).
        operation: filter, transform, aggregate or validate.
        options: Operation options:
            - filter: ``field`` with ``equals`` or ``contains``
            - transform: ``fields`` to keep
            - aggregate: numeric ``field`` to summarize
            - validate: ``required`` and ``types`` schema

    Returns:
        Dictionary with the operation name and its result.
    """
    if operation not in DATA_OPERATIONS:
        raise ToolError(f"Unknown operation: {operation}")

    options = options or {}
    parsed = _load_data(data)
    items = parsed if isinstance(parsed, list) else [parsed]

    if operation == "filter":
        result: Any = [item for item in items if _matches(item, options)]

    elif operation == "transform":
        fields = options.get("fields")
        result = []
        for item in items:
            record = dict(item) if isinstance(item, dict) else {"value": item}
            if fields:
                record = {key: record.get(key) for key in fields}
            record["processed"] = True
            result.append(record)

    elif operation == "aggregate":
        result = _aggregate(items, options.get("field"))

    else:
        results = [validate_data(item, options) for item in items]
        result = {"valid": all(r["valid"] for r in results), "results": results}

    if operation in ("filter", "transform") and not isinstance(parsed, list):
        result = result[0] if result else None

    return {"operation": operation, "result": result}
