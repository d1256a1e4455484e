"""Outbound HTTP with admission control and retry/backoff.

Every upstream call made by the server goes through a :class:`RetryClient`.
Each client owns a :class:`SlidingWindowRateLimiter`, so separate backends can
carry separate quotas.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Mapping, Optional, Tuple

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Base class for outbound request errors."""

    pass


class RateLimitExceeded(UpstreamError):
    """Raised when the local request quota is used up. Never retried."""

    def __init__(self, max_requests: int, window_seconds: float):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        super().__init__(
            f"Rate limit reached: {max_requests} requests per "
            f"{window_seconds:g}s. Please wait a moment."
        )


class HttpStatusError(UpstreamError):
    """Raised for a non-2xx upstream response."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}" if reason else f"HTTP {status_code}")


class TransportError(UpstreamError):
    """Raised for network failures, timeouts and requests that could not be built."""

    pass


class RequestFailed(UpstreamError):
    """Raised once every attempt of a request has failed."""

    def __init__(self, attempts: int, last_error: Exception):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Request failed after {attempts} attempts: {last_error}")


class SlidingWindowRateLimiter:
    """Hard request ceiling over a trailing time window.

    Bursts up to ``max_requests`` are admitted at once; anything beyond is
    rejected until old entries fall out of the window. Nothing is queued.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter.

        Args:
            max_requests: Requests admitted per window.
            window_seconds: Window length in seconds.
            clock: Monotonic time source in seconds.
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Deque[float] = deque()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._requests)

    def _purge(self, now: float) -> None:
        window_start = now - self.window_seconds
        while self._requests and self._requests[0] <= window_start:
            self._requests.popleft()

    async def check(self) -> Tuple[bool, int]:
        """Try to admit one request.

        Returns:
            Tuple of (admitted, remaining requests in the window).
        """
        async with self._lock:
            now = self._clock()
            self._purge(now)

            if len(self._requests) >= self.max_requests:
                return False, 0

            self._requests.append(now)
            return True, self.max_requests - len(self._requests)

    async def acquire(self) -> None:
        """Admit one request or raise.

        Raises:
            RateLimitExceeded: If the window is full.
        """
        admitted, _ = await self.check()
        if not admitted:
            raise RateLimitExceeded(self.max_requests, self.window_seconds)


class RetryClient:
    """Sends single requests through a rate limiter with exponential backoff."""

    def __init__(
        self,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        backoff_base: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            rate_limiter: Limiter consulted before every attempt. A new one
                with the configured per-minute quota is created if omitted.
            timeout: Per-request timeout in seconds.
            max_attempts: Attempts per request before giving up.
            backoff_base: Seconds multiplied by ``2 ** attempt`` between attempts.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
            sleep: Coroutine used for backoff delays.
        """
        settings = get_settings()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            settings.UPSTREAM_REQUESTS_PER_MINUTE
        )
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.max_attempts = max_attempts or settings.MAX_RETRY_ATTEMPTS
        self.backoff_base = (
            backoff_base if backoff_base is not None else settings.RETRY_BACKOFF_BASE
        )
        self._transport = transport
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        return (2 ** attempt) * self.backoff_base

    async def send(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        params: Any = None,
        json: Any = None,
        content: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ) -> httpx.Response:
        """Send a request, retrying transport and status failures.

        Args:
            url: Absolute request URL.
            method: HTTP method.
            headers: Request headers.
            params: Query parameters (a list of pairs allows repeated keys).
            json: JSON body.
            content: Raw body.
            timeout: Overrides the client timeout for this request.
            max_attempts: Overrides the client attempt count for this request.

        Returns:
            The first successful (2xx) response.

        Raises:
            RateLimitExceeded: If the limiter rejects an attempt.
            RequestFailed: If every attempt failed.
        """
        attempts = max_attempts or self.max_attempts
        request_timeout = timeout if timeout is not None else self.timeout
        last_error: Exception = TransportError("no attempt made")

        for attempt in range(1, attempts + 1):
            await self.rate_limiter.acquire()

            try:
                async with httpx.AsyncClient(
                    transport=self._transport,
                    timeout=request_timeout,
                ) as client:
                    response = await client.request(
                        method,
                        url,
                        headers=dict(headers or {}),
                        params=params,
                        json=json,
                        content=content,
                    )
            except Exception as e:
                # Invalid URLs and unencodable bodies count as transport failures
                last_error = TransportError(f"{type(e).__name__}: {e}")
            else:
                if response.is_success:
                    return response
                last_error = HttpStatusError(response.status_code, response.reason_phrase)

            if attempt < attempts:
                await self._sleep(self.backoff_delay(attempt))

        raise RequestFailed(attempts, last_error) from last_error


def parse_response_body(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to text.

    Args:
        response: Completed response.

    Returns:
        Parsed JSON, the raw text, or an empty dict for an empty body.
    """
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


def describe_error(error: Exception) -> Dict[str, Any]:
    """Summarize an upstream error for logs and tool output."""
    info: Dict[str, Any] = {"error_type": type(error).__name__, "message": str(error)}
    if isinstance(error, RequestFailed):
        info["attempts"] = error.attempts
        if isinstance(error.last_error, HttpStatusError):
            info["status_code"] = error.last_error.status_code
    return info
