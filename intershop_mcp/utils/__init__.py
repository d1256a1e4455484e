"""Utility modules for the Intershop MCP server."""

from .database import DatabaseClient, DatabaseError, validate_data
from .http_client import (
    HttpStatusError,
    RateLimitExceeded,
    RequestFailed,
    RetryClient,
    SlidingWindowRateLimiter,
    TransportError,
    UpstreamError,
)
from .prices import classify_price, normalize_price
from .text import strip_html

__all__ = [
    "DatabaseClient",
    "DatabaseError",
    "HttpStatusError",
    "RateLimitExceeded",
    "RequestFailed",
    "RetryClient",
    "SlidingWindowRateLimiter",
    "TransportError",
    "UpstreamError",
    "classify_price",
    "normalize_price",
    "strip_html",
    "validate_data",
]
