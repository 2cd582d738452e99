"""
Base HTTP client for building API clients.

This module provides an abstract base class for creating async HTTP clients
using httpx. It includes support for proxies, custom headers, default
cookies, JSON and form-encoded request bodies.
"""

from abc import ABC
from typing import Any
import logging

import httpx

from .exceptions import HTTPError, ProxyError, ConfigurationError, TimeoutError


logger = logging.getLogger(__name__)


class BaseClient(ABC):
    """
    Abstract base class for building HTTP API clients.

    This class provides a foundation for creating async HTTP clients with
    built-in support for:
    - Proxy configuration
    - Default cookies
    - Custom headers
    - JSON and form-encoded bodies
    - Automatic JSON response parsing
    - Proper resource cleanup

    Attributes:
        BASE_URL (str): Default base URL for API requests. Should be overridden
                       by subclasses or via constructor.
        USER_AGENT (str): Default User-Agent header.
        client (httpx.AsyncClient): The underlying httpx async client.

    Example:
        >>> class MyAPIClient(BaseClient):
        ...     BASE_URL = "https://api.example.com"
        ...
        ...     async def get_user(self, user_id: int):
        ...         return await self._get(f"/users/{user_id}")
        ...
        >>> async with MyAPIClient(proxy="proxy.example.com:8080") as client:
        ...     user = await client.get_user(123)
    """

    BASE_URL: str = "https://api.example.com"
    USER_AGENT: str = "okhttp/4.9.2"

    def __init__(
        self,
        base_url: str | None = None,
        proxy: str | None = None,
        cookies: dict[str, str] | None = None,
        timeout: float = 30.0,
        **kwargs: Any,
    ):
        """
        Initialize the base client.

        Args:
            base_url: Custom base URL to override the class BASE_URL attribute.
            proxy: Proxy URL in format "host:port" or "http://host:port".
            cookies: Cookies sent with every request.
            timeout: Request timeout in seconds. Defaults to 30.0.
            **kwargs: Additional arguments passed to httpx.AsyncClient.
                     Common options include:
                     - headers: Custom headers dict
                     - verify: SSL verification (bool or path to cert)
                     - follow_redirects: Whether to follow redirects (bool)
                     - transport: A custom httpx transport

        Raises:
            ConfigurationError: If proxy format is invalid.
        """
        self.proxy = proxy
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.cookies: dict[str, str] = dict(cookies or {})

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

        if "timeout" not in kwargs:
            kwargs["timeout"] = timeout

        self.client = httpx.AsyncClient(cookies=self.cookies, **kwargs)

        default_headers = {
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        }
        # Caller-supplied headers win over the defaults
        for name, value in default_headers.items():
            self.client.headers.setdefault(name, value)

        logger.info(f"Client initialized with base URL: {self.base_url}")

    async def _fetch(
        self,
        method: str,
        endpoint: str = "",
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
        form: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Perform an HTTP request and return JSON response.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH, etc.).
            endpoint: API endpoint path (will be appended to the base URL).
            params: Query parameters for the request.
            payload: JSON payload.
            form: Form-encoded body (application/x-www-form-urlencoded).
            headers: Additional headers for this specific request.
            **kwargs: Additional arguments passed to httpx request method.

        Returns:
            Parsed JSON response as a dictionary.

        Raises:
            HTTPError: If the request fails or returns an error status code.
            ProxyError: If there's a proxy-related connection issue.
            TimeoutError: If the request times out.
        """
        url = f"{self.base_url}{endpoint}"

        if form is not None:
            kwargs["data"] = form

        try:
            logger.debug(f"{method} {url}")
            response = await self.client.request(
                method,
                url,
                params=params,
                json=payload,
                headers=headers,
                **kwargs,
            )
            response.raise_for_status()

            logger.debug(f"Response status: {response.status_code}")
            return response.json()

        except httpx.ProxyError as e:
            logger.error(f"Proxy error: {e}")
            raise ProxyError(f"Proxy connection failed: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code}: {e}")
            raise HTTPError(
                f"Request failed with status {e.response.status_code}",
                status_code=e.response.status_code,
                response_body=_safe_body(e.response),
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {e}")
            raise TimeoutError(f"Request timed out: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            raise HTTPError(f"Request failed: {e}") from e

    async def _get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Convenience method for GET requests."""
        return await self._fetch("GET", endpoint, params=params, **kwargs)

    async def _post(
        self,
        endpoint: str,
        payload: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Convenience method for JSON POST requests."""
        return await self._fetch("POST", endpoint, payload=payload, **kwargs)

    async def _post_form(
        self,
        endpoint: str,
        form: dict[str, Any],
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Convenience method for form-encoded POST requests."""
        return await self._fetch("POST", endpoint, form=form, **kwargs)

    async def close(self) -> None:
        """
        Close the HTTP client and release resources.

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


def _safe_body(response: Any) -> dict | str | None:
    try:
        return response.json()
    except Exception:
        return getattr(response, "text", None)
