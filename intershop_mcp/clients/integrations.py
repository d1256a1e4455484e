"""Example third-party API integrations."""

import logging
from typing import Any, Dict, Mapping, Optional

from ..utils.http_client import RetryClient, parse_response_body
from .base import RestApiClient

logger = logging.getLogger(__name__)


class GraphQLError(Exception):
    """Raised when a GraphQL response carries an ``errors`` array."""

    def __init__(self, errors: Any):
        self.errors = errors
        super().__init__(f"GraphQL Error: {errors}")


class WeatherApiClient(RestApiClient):
    """OpenWeatherMap client."""

    BASE_URL = "https://api.openweathermap.org/data/2.5"

    def __init__(
        self,
        api_key: str,
        retry_client: Optional[RetryClient] = None,
        language: str = "en",
    ):
        super().__init__(self.BASE_URL, retry_client=retry_client)
        self.api_key = api_key
        self.language = language

    async def get_current_weather(self, city: str) -> Dict[str, Any]:
        return await self.get(
            "/weather",
            {"q": city, "appid": self.api_key, "units": "metric", "lang": self.language},
        )

    async def get_forecast(self, city: str, days: int = 5) -> Dict[str, Any]:
        """Forecast in three-hour steps, eight samples per day."""
        return await self.get(
            "/forecast",
            {
                "q": city,
                "appid": self.api_key,
                "cnt": days * 8,
                "units": "metric",
                "lang": self.language,
            },
        )


class GraphQLApiClient:
    """Minimal GraphQL-over-HTTP client."""

    def __init__(
        self,
        endpoint: str,
        headers: Optional[Mapping[str, str]] = None,
        retry_client: Optional[RetryClient] = None,
    ):
        self.endpoint = endpoint
        self.headers = {"Content-Type": "application/json", **dict(headers or {})}
        self.retry_client = retry_client or RetryClient()

    async def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        """Run a query and return its ``data`` member.

        Raises:
            GraphQLError: If the response contains errors.
        """
        response = await self.retry_client.send(
            self.endpoint,
            method="POST",
            headers=self.headers,
            json={"query": query, "variables": variables or {}},
        )
        result = parse_response_body(response)

        if isinstance(result, dict) and result.get("errors"):
            raise GraphQLError(result["errors"])

        return result.get("data") if isinstance(result, dict) else result

    async def mutation(self, mutation: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        return await self.query(mutation, variables)
