"""
HTTP transport implementation.

Uses httpx for synchronous HTTP communication with the StreamOne API.
"""

import logging
from typing import Any, Mapping, Optional

import httpx
from tenacity import Retrying

from .canonicalize import build_query
from .errors import NetworkError, RateLimitError, ServerError
from .retry import RetryPolicy
from .transport import BaseTransport

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class HttpTransport(BaseTransport):
    """
    HTTP implementation of Transport.

    Features:
    - Query string and body encoded with the same canonical encoder used for signing
    - Structured error mapping
    - Opt-in retries for transient failures (none by default)
    - Connection pooling via httpx
    """

    def __init__(
        self,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            timeout: Request timeout in seconds (default: 30.0)
            retry_policy: Retry policy (default: RetryPolicy.no_retry())
            http_client: Optional custom httpx.Client
        """
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy.no_retry()

        if http_client:
            self._http_client = http_client
            self._own_client = False
        else:
            self._http_client = httpx.Client(timeout=timeout)
            self._own_client = True

    def send(
        self,
        base_url: str,
        path: str,
        parameters: Mapping[str, Any],
        arguments: Mapping[str, Any],
    ) -> str:
        """POST the request, retrying transient failures per the retry policy."""
        url = base_url.rstrip("/") + path + "?" + build_query(parameters)
        body = build_query(arguments)

        for attempt in Retrying(**self.retry_policy.to_tenacity_kwargs()):
            with attempt:
                try:
                    logger.debug(f"POST {base_url.rstrip('/')}{path}")
                    response = self._http_client.post(
                        url,
                        content=body,
                        headers={"Content-Type": FORM_CONTENT_TYPE},
                    )
                    return self._handle_response(response, path)

                except httpx.TimeoutException as e:
                    logger.warning(f"Request timeout for {path}: {e}")
                    raise NetworkError(f"Request timeout: {e}", details={"path": path}) from e

                except httpx.ConnectError as e:
                    logger.warning(f"Connection error for {path}: {e}")
                    raise NetworkError(f"Connection error: {e}", details={"path": path}) from e

                except httpx.HTTPError as e:
                    logger.error(f"HTTP error for {path}: {e}")
                    raise NetworkError(f"HTTP error: {e}", details={"path": path}) from e

        # Unreachable with reraise=True
        raise NetworkError("Retries exhausted", details={"path": path})

    def _handle_response(self, response: httpx.Response, path: str) -> str:
        """
        Map transport-level failures to errors; return the body text otherwise.

        API-level failures are encoded in the response body and are left to the
        caller to interpret.
        """
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if 500 <= response.status_code < 600:
            raise ServerError(
                status_code=response.status_code,
                message=response.text[:200],
                details={"path": path},
            )

        return response.text

    def close(self) -> None:
        """Close HTTP client if we own it."""
        if self._own_client:
            self._http_client.close()
