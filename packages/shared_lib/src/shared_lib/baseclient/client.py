"""
Base HTTP client for building API clients.

This module provides an abstract base class for creating async HTTP clients
using httpx. It includes support for proxies, custom headers, cookies and a
typed transport error taxonomy.
"""

from abc import ABC
from typing import Any
import logging

import httpx

from .exceptions import (
    ConfigurationError,
    ConnectionFailedError,
    HTTPStatusError,
    ProxyError,
    RequestTimeoutError,
    TransportError,
)
from .request import RawResponse, Request


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "Avanza API client"


class BaseClient(ABC):
    """
    Abstract base class for building HTTP API clients.

    This class provides a foundation for creating async HTTP clients with
    built-in support for:
    - Proxy configuration
    - Custom headers and cookies
    - Finite request timeouts
    - Typed transport errors that keep the raw response for diagnosis
    - Proper resource cleanup

    The transport never retries and never interprets status codes beyond
    "2xx or not". Retry and classification belong to the caller.

    Attributes:
        BASE_URL (str): Default base URL for API requests. Should be overridden
                       by subclasses or via constructor.
        client (httpx.AsyncClient): The underlying httpx async client.

    Example:
        >>> class MyAPIClient(BaseClient):
        ...     BASE_URL = "https://api.example.com"
        ...
        ...     async def get_user(self, user_id: int):
        ...         response = await self.send(Request("GET", f"/users/{user_id}"))
        ...         return response.json()
        ...
        >>> async with MyAPIClient(proxy="proxy.example.com:8080") as client:
        ...     user = await client.get_user(123)
    """

    BASE_URL: str = "https://api.example.com"

    def __init__(
        self,
        base_url: str | None = None,
        proxy: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        **kwargs: Any,
    ):
        """
        Initialize the base client.

        Args:
            base_url: Custom base URL to override the class BASE_URL attribute.
            proxy: Proxy URL in format "host:port" or "http://host:port".
            timeout: Request timeout in seconds. Defaults to 30.0. Must be
                     finite and positive.
            user_agent: Value of the User-Agent header.
            **kwargs: Additional arguments passed to httpx.AsyncClient.
                     Common options include:
                     - headers: Custom headers dict
                     - cookies: Additional cookies dict
                     - event_hooks: httpx request/response hooks
                     - transport: Custom httpx transport (e.g. for tests)

        Raises:
            ConfigurationError: If proxy format or timeout is invalid.
        """
        self.proxy = proxy
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

        if timeout is None or timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be a positive number of seconds, got {timeout!r}"
            )
        self.timeout = timeout

        # Configure proxy if provided
        if self.proxy is not None:
            try:
                proxy_url = (
                    self.proxy
                    if self.proxy.startswith("http")
                    else f"http://{self.proxy}"
                )
                kwargs["proxy"] = proxy_url
                logger.debug(f"Proxy configured: {proxy_url}")
            except Exception as e:
                raise ConfigurationError(f"Invalid proxy configuration: {e}") from e

        # Set default headers, user-provided ones win. httpx adds Content-Type for JSON bodies.
        user_headers = kwargs.pop("headers", None) or {}
        headers = {
            "Accept": "application/json",
            "User-Agent": user_agent,
            **user_headers,
        }

        self.client = httpx.AsyncClient(timeout=timeout, headers=headers, **kwargs)

        logger.info(f"Client initialized with base URL: {self.base_url}")

    async def send(self, request: Request) -> RawResponse:
        """
        Perform an HTTP request and return the raw response.

        This is the core method for making HTTP requests. It handles URL
        construction and maps httpx failures onto the transport taxonomy.

        Args:
            request: The logical request to send.

        Returns:
            RawResponse for any 2xx status.

        Raises:
            HTTPStatusError: If the server returns a non-2xx status code. The
                             raw response is attached.
            RequestTimeoutError: If the request times out.
            ProxyError: If there's a proxy-related connection issue.
            ConnectionFailedError: If the server could not be reached.
            TransportError: For any other httpx failure.

        Example:
            >>> await self.send(Request("GET", "/users", params={"page": 1}))
            >>> await self.send(Request("POST", "/users", payload={"name": "John"}))
        """
        url = f"{self.base_url}{request.path}"

        headers = dict(request.headers)
        if request.cookies:
            # Format: "name1=value1; name2=value2"
            headers["Cookie"] = "; ".join(
                f"{key}={value}" for key, value in request.cookies.items()
            )

        try:
            logger.debug(f"{request.method} {url}")
            response = await self.client.request(
                request.method,
                url,
                params=dict(request.params) if request.params else None,
                json=request.payload,
                headers=headers or None,
            )
        except httpx.ProxyError as e:
            logger.error(f"Proxy error: {e}")
            raise ProxyError(f"Proxy connection failed: {e}") from e
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {e}")
            raise RequestTimeoutError(f"Request timed out: {e}") from e
        except httpx.ConnectError as e:
            logger.error(f"Connection error: {e}")
            raise ConnectionFailedError(f"Connection failed: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Unexpected transport error: {e}")
            raise TransportError(f"Request failed: {e}") from e

        raw = RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            text=response.text,
            url=url,
        )
        logger.debug(f"Response status: {raw.status_code}")

        if not raw.is_success:
            logger.warning(f"HTTP error {raw.status_code} for {request.method} {url}")
            raise HTTPStatusError(
                f"Request failed with status {raw.status_code}", response=raw
            )

        return raw

    async def close(self) -> None:
        """
        Close the HTTP client and release resources.

        This should be called when the client is no longer needed to
        properly clean up connections and resources.

        Example:
            >>> client = MyAPIClient()
            >>> try:
            ...     await client.get_data()
            ... finally:
            ...     await client.close()
        """
        await self.client.aclose()
        logger.info("Client closed")

    async def __aenter__(self):
        """Enable use as async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Ensure client is closed when exiting context."""
        await self.close()
