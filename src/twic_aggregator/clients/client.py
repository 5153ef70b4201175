"""Base client for network requests."""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

import httpx

from .exceptions import (
    APIError,
    ConnectionError,
    MethodNotAllowedError,
    NotFoundError,
    RedirectError,
    RequestTimeoutError,
)

logger = logging.getLogger(__name__)


class Client(ABC):
    """Base class for network clients.

    Provides lazy-initialized httpx.Client with context manager support,
    configurable timeout and headers via dict config. Redirects are not
    followed so that callers can decide how to react to them.

    Config keys:
        base_url (required): Base URL for all requests
        timeout: Request timeout in seconds (default: 30)
        headers: Additional headers to include in requests
    """

    def __init__(self, config: dict, transport: httpx.BaseTransport | None = None):
        if "base_url" not in config:
            raise ValueError("config must include 'base_url'")

        self._config = config
        self._transport = transport
        self._client: httpx.Client | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self.base_url}')"

    @property
    def base_url(self) -> str:
        return str(self._config["base_url"])

    @property
    def timeout(self) -> float:
        return float(self._config.get("timeout", 30))

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._config.get("headers", {}))

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialized httpx client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                follow_redirects=False,
                transport=self._transport,
            )
        return self._client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Map HTTP errors to exceptions.

        Args:
            response: The HTTP response to check

        Returns:
            The response if successful

        Raises:
            RedirectError: For 3xx responses
            NotFoundError: For 404 responses
            MethodNotAllowedError: For 405 responses
            APIError: For other non-2xx responses
        """
        if response.is_success:
            return response

        status_code = response.status_code

        if response.is_redirect or 300 <= status_code < 400:
            raise RedirectError(
                f"Redirected ({status_code}): {response.url}",
                status_code=status_code,
                location=response.headers.get("location"),
            )
        elif status_code == 404:
            raise NotFoundError(f"Resource not found: {response.url}")
        elif status_code == 405:
            raise MethodNotAllowedError(f"Method not allowed: {response.url}")
        else:
            raise APIError(
                f"API error {status_code} {response.reason_phrase}: {response.url}",
                status_code=status_code,
            )

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Make a single request and map failures to client exceptions.

        Args:
            method: HTTP method (GET, HEAD, ...)
            path: URL path (appended to base_url)
            **kwargs: Additional arguments passed to httpx.request

        Returns:
            The HTTP response

        Raises:
            RequestTimeoutError: If the request times out
            ConnectionError: If the network connection fails
            APIError: If the server returns a non-2xx response
        """
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"Timed out: {method} {self.base_url}{path}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Connection failed: {method} {self.base_url}{path}: {e}") from e

        return self._handle_response(response)

    @contextmanager
    def _stream(self, method: str, path: str, **kwargs) -> Iterator[httpx.Response]:
        """Open a streaming request; the body is read lazily by the caller.

        Raises the same exceptions as _request, including for transport
        failures that happen while the caller is reading the body.
        """
        try:
            with self.client.stream(method, path, **kwargs) as response:
                yield self._handle_response(response)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"Timed out: {method} {self.base_url}{path}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Connection failed: {method} {self.base_url}{path}: {e}") from e

    def head(self, path: str, **kwargs) -> httpx.Response:
        """Convenience method for HEAD requests."""
        return self._request("HEAD", path, **kwargs)

    def get(self, path: str, **kwargs) -> httpx.Response:
        """Convenience method for GET requests."""
        return self._request("GET", path, **kwargs)

    @abstractmethod
    def fetch(self, *args, **kwargs) -> Any:
        """Fetch data from the server. Must be implemented by subclasses."""
        pass
