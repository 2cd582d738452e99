"""
Unit tests for BaseClient.

Tests cover:
- Client initialization with various configurations
- HTTP methods (_get, _post, _post_form)
- Error handling and custom exceptions
- Proxy configuration
- Cookie management
- Context manager usage
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch
import httpx

from shared_lib.baseclient import Client as BaseClient
from shared_lib.baseclient.exceptions import (
    ConfigurationError,
    HTTPError,
    ProxyError,
    TimeoutError,
)


class _APIClient(BaseClient):
    """Test implementation of BaseClient (not collected by pytest)."""

    BASE_URL = "https://api.test.com"


def _json_response(body, status_code=200):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.json.return_value = body
    return mock_response


class TestBaseClientInitialization:
    """Tests for BaseClient initialization."""

    def test_init_with_defaults(self):
        """Test client initialization with default values."""
        client = _APIClient()

        assert client.base_url == "https://api.test.com"
        assert client.proxy is None
        assert client.cookies == {}
        assert isinstance(client.client, httpx.AsyncClient)
        assert client.client.headers["Accept"] == "application/json"
        assert client.client.headers["User-Agent"] == "okhttp/4.9.2"

    def test_init_with_custom_base_url(self):
        """Test client initialization with custom base URL."""
        client = _APIClient(base_url="https://custom.api.com/")

        assert client.base_url == "https://custom.api.com"

    def test_init_with_proxy(self):
        """Test client initialization with proxy."""
        client = _APIClient(proxy="proxy.example.com:8080")

        assert client.proxy == "proxy.example.com:8080"

    def test_init_with_proxy_invalid(self):
        """Test client initialization with invalid proxy."""
        with pytest.raises(ConfigurationError):
            _APIClient(proxy=1)  # type: ignore

    def test_init_with_custom_timeout(self):
        """Test client initialization with custom timeout."""
        client = _APIClient(timeout=60.0)

        assert client.client.timeout.read == 60.0

    def test_init_with_custom_headers(self):
        """Test caller headers are kept and defaults fill the rest."""
        client = _APIClient(headers={"User-Agent": "custom/1.0", "X-Test": "1"})

        assert client.client.headers["User-Agent"] == "custom/1.0"
        assert client.client.headers["X-Test"] == "1"
        assert client.client.headers["Accept"] == "application/json"


class TestBaseClientFetchMethod:
    """Tests for the _fetch method."""

    @pytest.mark.asyncio
    async def test_fetch_get_success(self):
        """Test successful GET request."""
        client = _APIClient()

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response({"id": 1, "name": "test"})

            result = await client._fetch("GET", "/users/1")

            assert result == {"id": 1, "name": "test"}
            mock_request.assert_called_once_with(
                "GET",
                "https://api.test.com/users/1",
                params=None,
                json=None,
                headers=None,
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_post_with_payload(self):
        """Test POST request with JSON payload."""
        client = _APIClient()
        payload = {"name": "test user"}

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response({"id": 2}, status_code=201)

            result = await client._fetch("POST", "/users", payload=payload)

            assert result == {"id": 2}
            mock_request.assert_called_once_with(
                "POST",
                "https://api.test.com/users",
                params=None,
                json=payload,
                headers=None,
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_with_form_body(self):
        """Test form bodies are sent as `data`."""
        client = _APIClient()
        form = {"client_id": "1", "request_id": "abc"}

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response({"response": {}})

            await client._fetch("POST", "/poll", form=form)

            mock_request.assert_called_once_with(
                "POST",
                "https://api.test.com/poll",
                params=None,
                json=None,
                headers=None,
                data=form,
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_with_params_and_headers(self):
        """Test request with query parameters and custom headers."""
        client = _APIClient()
        params = {"page": 1}
        custom_headers = {"X-Custom-Header": "value"}

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response({"results": []})

            result = await client._fetch(
                "GET", "/users", params=params, headers=custom_headers
            )

            assert result == {"results": []}
            mock_request.assert_called_once_with(
                "GET",
                "https://api.test.com/users",
                params=params,
                json=None,
                headers=custom_headers,
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_empty_endpoint(self):
        """Test request with empty endpoint."""
        client = _APIClient()

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response({})

            await client._fetch("GET", "")

            call_args = mock_request.call_args
            assert call_args[0][1] == "https://api.test.com"

        await client.close()


class TestBaseClientConvenienceMethods:
    """Tests for convenience methods (_get, _post, _post_form)."""

    @pytest.mark.asyncio
    async def test_get_method(self):
        """Test _get convenience method."""
        client = _APIClient()

        with patch.object(client, "_fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = {"id": 1}

            result = await client._get("/users/1", params={"fields": "all"})

            assert result == {"id": 1}
            mock_fetch.assert_called_once_with(
                "GET", "/users/1", params={"fields": "all"}
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_post_method(self):
        """Test _post convenience method."""
        client = _APIClient()
        payload = {"name": "test"}

        with patch.object(client, "_fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = {"id": 2, "name": "test"}

            result = await client._post("/users", payload=payload)

            assert result == {"id": 2, "name": "test"}
            mock_fetch.assert_called_once_with("POST", "/users", payload=payload)

        await client.close()

    @pytest.mark.asyncio
    async def test_post_form_method(self):
        """Test _post_form convenience method."""
        client = _APIClient()
        form = {"steamid": "0"}

        with patch.object(client, "_fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = {"response": {"server_time": "1"}}

            result = await client._post_form("/time", form)

            assert result == {"response": {"server_time": "1"}}
            mock_fetch.assert_called_once_with("POST", "/time", form=form)

        await client.close()


class TestBaseClientExceptions:
    """Tests for exception handling."""

    @pytest.mark.asyncio
    async def test_http_error_on_404(self):
        """Test HTTPError raised on 404 response."""
        client = _APIClient()
        mock_response = _json_response({"error": "Not found"}, status_code=404)
        error = httpx.HTTPStatusError(
            "404 Not Found", request=Mock(), response=mock_response
        )

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = error

            with pytest.raises(HTTPError) as exc_info:
                await client._fetch("GET", "/users/999")

            assert exc_info.value.status_code == 404
            assert exc_info.value.response_body == {"error": "Not found"}
            assert "404" in str(exc_info.value.message)

        await client.close()

    @pytest.mark.asyncio
    async def test_http_error_keeps_text_body(self):
        """Test a non-JSON error body is kept as text."""
        client = _APIClient()
        mock_response = Mock()
        mock_response.status_code = 502
        mock_response.json.side_effect = ValueError("not json")
        mock_response.text = "Bad Gateway"
        error = httpx.HTTPStatusError(
            "502 Bad Gateway", request=Mock(), response=mock_response
        )

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = error

            with pytest.raises(HTTPError) as exc_info:
                await client._fetch("GET", "/users")

            assert exc_info.value.status_code == 502
            assert exc_info.value.response_body == "Bad Gateway"

        await client.close()

    @pytest.mark.asyncio
    async def test_proxy_error(self):
        """Test ProxyError raised on proxy connection failure."""
        client = _APIClient(proxy="bad-proxy.com:8080")

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = httpx.ProxyError("Proxy connection failed")

            with pytest.raises(ProxyError) as exc_info:
                await client._fetch("GET", "/users")

            assert "Proxy connection failed" in str(exc_info.value.message)

        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_error(self):
        """Test TimeoutError raised on timeout."""
        client = _APIClient()

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = httpx.TimeoutException("Request timed out")

            with pytest.raises(TimeoutError) as exc_info:
                await client._fetch("GET", "/users")

            assert "timed out" in str(exc_info.value.message).lower()

        await client.close()

    @pytest.mark.asyncio
    async def test_generic_exception(self):
        """Test HTTPError raised on generic exception."""
        client = _APIClient()

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = Exception("Something went wrong")

            with pytest.raises(HTTPError) as exc_info:
                await client._fetch("GET", "/users")

            assert "Request failed" in str(exc_info.value.message)
            assert exc_info.value.status_code is None

        await client.close()


class TestBaseClientContextManager:
    """Tests for async context manager functionality."""

    @pytest.mark.asyncio
    async def test_context_manager_usage(self):
        """Test client can be used as async context manager."""
        async with _APIClient() as client:
            assert isinstance(client, _APIClient)
            assert client.client is not None

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self):
        """Test client is closed when exiting context."""
        client = _APIClient()

        with patch.object(client, "close", new_callable=AsyncMock) as mock_close:
            async with client:
                pass

            mock_close.assert_called_once()

    @pytest.mark.asyncio
    async def test_context_manager_with_exception(self):
        """Test client is closed even when exception occurs."""
        client = _APIClient()

        with patch.object(client, "close", new_callable=AsyncMock) as mock_close:
            with pytest.raises(ValueError):
                async with client:
                    raise ValueError("Test exception")

            mock_close.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_method(self):
        """Test close method."""
        client = _APIClient()

        with patch.object(
            client.client, "aclose", new_callable=AsyncMock
        ) as mock_aclose:
            await client.close()

            mock_aclose.assert_called_once()


class TestBaseClientCookieManagement:
    """Tests for cookie management."""

    def test_default_cookies_kept(self):
        """Test default cookies are stored on the client."""
        client = _APIClient(cookies={"sessionid": "abc"})

        assert client.cookies == {"sessionid": "abc"}

    def test_cookies_passed_to_httpx_client(self):
        """Test cookies are passed to httpx client."""
        client = _APIClient(cookies={"sessionid": "abc"})

        assert client.client.cookies.get("sessionid") == "abc"
