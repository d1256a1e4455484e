"""API clients for the Intershop backend and example integrations."""

from functools import lru_cache

from ..config import get_settings
from ..utils.http_client import RetryClient, SlidingWindowRateLimiter
from .base import RestApiClient, interpolate_url
from .enrichment import PriceEnricher, extract_sku, flatten_price_records
from .integrations import GraphQLApiClient, GraphQLError, WeatherApiClient
from .intershop import IntershopClient


@lru_cache
def get_intershop_client() -> IntershopClient:
    """Get the process-wide Intershop client with its own request quota."""
    settings = get_settings()
    limiter = SlidingWindowRateLimiter(settings.UPSTREAM_REQUESTS_PER_MINUTE)
    return IntershopClient(retry_client=RetryClient(rate_limiter=limiter))


@lru_cache
def get_integration_retry_client() -> RetryClient:
    """Get the shared retry client for third-party integrations."""
    settings = get_settings()
    return RetryClient(
        rate_limiter=SlidingWindowRateLimiter(settings.UPSTREAM_REQUESTS_PER_MINUTE)
    )


__all__ = [
    "GraphQLApiClient",
    "GraphQLError",
    "IntershopClient",
    "PriceEnricher",
    "RestApiClient",
    "WeatherApiClient",
    "extract_sku",
    "flatten_price_records",
    "get_integration_retry_client",
    "get_intershop_client",
    "interpolate_url",
]
