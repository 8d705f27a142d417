# SMSYNC HTTP Client Base
# Shared httpx plumbing and error mapping for platform clients

import logging
from typing import Any, Optional

import httpx

from smsync.errors import AuthenticationError, GatewayError, RateLimitError, TransportError

logger = logging.getLogger(__name__)

MAX_ERROR_BODY = 2000


def _error_body(response: httpx.Response) -> Any:
    """Decoded JSON error body, or truncated text."""
    try:
        return response.json()
    except ValueError:
        return response.text[:MAX_ERROR_BODY]


class ApiClient:
    """
    Thin wrapper over httpx.Client.

    Every call maps to exactly one request. HTTP and network failures are
    logged with the remote body and raised as GatewayError subclasses.
    """

    platform = "api"

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str],
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send one request.

        Raises:
            TransportError: No response was received.
            AuthenticationError: HTTP 401 or 403.
            RateLimitError: HTTP 429.
            GatewayError: Any other 4xx/5xx.
        """
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("%s %s %s failed: %s", self.platform, method, path, e)
            raise TransportError(
                f"{self.platform} {method} {path} failed: {e}",
                platform=self.platform,
                context={"path": path},
            ) from e

        if response.is_error:
            body = _error_body(response)
            status = response.status_code
            logger.error("%s %s %s returned HTTP %d: %s", self.platform, method, path, status, body)
            if status in (401, 403):
                error_cls = AuthenticationError
            elif status == 429:
                error_cls = RateLimitError
            else:
                error_cls = GatewayError
            raise error_cls(
                f"{self.platform} {method} {path} returned HTTP {status}",
                platform=self.platform,
                status_code=status,
                body=body,
                context={"path": path},
            )

        return response

    def get_json(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("GET", path, **kwargs).json()
