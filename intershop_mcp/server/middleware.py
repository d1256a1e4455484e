"""Middleware components for the MCP server: CORS, logging, rate limiting, errors."""

import logging
import time
import uuid
from collections import defaultdict
from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import get_settings
from ..utils.http_client import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

# Paths that are never rate limited
UNLIMITED_PATHS = ("/", "/health", "/healthz")


def setup_cors(app: FastAPI) -> None:
    """Allow cross-origin calls from browser-based chat widgets."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with a short request ID and its duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        client = request.client.host if request.client else "unknown"

        started = time.perf_counter()
        logger.info(f"[{request_id}] {request.method} {request.url.path} - Client: {client}")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] {request.method} {request.url.path} "
                f"- Error: {e} - Duration: {time.perf_counter() - started:.3f}s"
            )
            raise

        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"- Status: {response.status_code} - Duration: {time.perf_counter() - started:.3f}s"
        )
        response.headers["X-Request-ID"] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client sliding-window rate limiting for inbound requests."""

    def __init__(
        self,
        app: ASGIApp,
        requests_per_window: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiting middleware.

        Args:
            app: ASGI application.
            requests_per_window: Max requests allowed per window.
            window_seconds: Window duration in seconds.
            clock: Time source handed to each client's limiter.
        """
        super().__init__(app)
        settings = get_settings()
        self.requests_per_window = requests_per_window or settings.RATE_LIMIT_REQUESTS
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW
        self.limiters: Dict[str, SlidingWindowRateLimiter] = defaultdict(
            lambda: SlidingWindowRateLimiter(self.requests_per_window, self.window_seconds, clock)
        )

    def _get_client_key(self, request: Request) -> str:
        """Get unique key for rate limiting client.

        Args:
            request: Incoming request.

        Returns:
            Client identifier string.
        """
        # Use client IP, or forwarded IP if behind proxy
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with rate limiting.

        Args:
            request: Incoming request.
            call_next: Next middleware/route handler.

        Returns:
            Response from handler or 429 if rate limited.
        """
        if request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        client_key = self._get_client_key(request)
        admitted, remaining = await self.limiters[client_key].check()

        if not admitted:
            logger.warning(f"Rate limit exceeded for client: {client_key}")
            return Response(
                content='{"error": "Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
                headers={
                    "X-RateLimit-Limit": str(self.requests_per_window),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(self.window_seconds),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a JSON 500 response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception(f"[{request_id}] Unhandled exception: {e}")

            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "request_id": request_id},
            )


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI app.

    Starlette runs middleware in reverse order of registration, so requests
    pass through logging, then rate limiting, then error handling, then CORS.

    Args:
        app: FastAPI application instance.
    """
    setup_cors(app)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


def setup_logging() -> None:
    """Configure application logging from settings."""
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper()),
        format=settings.LOG_FORMAT,
    )

    # Reduce noise from third-party libraries
    for name in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)
