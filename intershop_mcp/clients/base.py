"""Generic JSON REST client on top of the retry client."""

import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from ..utils.http_client import RetryClient, parse_response_body

logger = logging.getLogger(__name__)


def interpolate_url(url: str, path_params: Optional[Mapping[str, Any]] = None) -> str:
    """Replace ``{name}`` placeholders with URL-encoded values.

    Args:
        url: URL template, e.g. ``/posts/{id}``.
        path_params: Placeholder values.

    Returns:
        URL with placeholders substituted.
    """
    for key, value in (path_params or {}).items():
        url = url.replace(f"{{{key}}}", quote(str(value), safe=""))
    return url


def clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop None values and render booleans the way the REST API expects."""
    cleaned: Dict[str, Any] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        cleaned[key] = str(value).lower() if isinstance(value, bool) else value
    return cleaned


class RestApiClient:
    """REST client with a base URL and default headers."""

    def __init__(
        self,
        base_url: str,
        default_headers: Optional[Mapping[str, str]] = None,
        retry_client: Optional[RetryClient] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Prefix for every endpoint.
            default_headers: Headers sent with every request.
            retry_client: Transport with rate limiting and retries.
        """
        self.base_url = base_url.rstrip("/")
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self.retry_client = retry_client or RetryClient()

    def build_url(self, endpoint: str, path_params: Optional[Mapping[str, Any]] = None) -> str:
        return interpolate_url(f"{self.base_url}{endpoint}", path_params)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Any = None,
        data: Any = None,
        path_params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send a request and decode the response body.

        Args:
            method: HTTP method.
            endpoint: Path appended to the base URL.
            params: Query parameters, a mapping or a list of pairs.
            data: JSON body for POST/PUT.
            path_params: Values for ``{name}`` placeholders in the endpoint.
            headers: Extra headers for this request.

        Returns:
            Decoded JSON body (text if the body is not JSON).
        """
        url = self.build_url(endpoint, path_params)
        request_headers = dict(self.default_headers)
        if data is not None:
            request_headers.setdefault("Content-Type", "application/json")
        request_headers.update(headers or {})

        if isinstance(params, Mapping):
            params = clean_params(params)

        logger.debug(f"{method} {url}")
        response = await self.retry_client.send(
            url,
            method=method,
            headers=request_headers,
            params=params or None,
            json=data,
        )
        return parse_response_body(response)

    async def get(
        self,
        endpoint: str,
        params: Any = None,
        path_params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self.request("GET", endpoint, params=params, path_params=path_params)

    async def post(
        self,
        endpoint: str,
        data: Any = None,
        path_params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self.request("POST", endpoint, data=data if data is not None else {}, path_params=path_params)

    async def put(
        self,
        endpoint: str,
        data: Any = None,
        path_params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self.request("PUT", endpoint, data=data if data is not None else {}, path_params=path_params)

    async def delete(
        self,
        endpoint: str,
        path_params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self.request("DELETE", endpoint, path_params=path_params)
