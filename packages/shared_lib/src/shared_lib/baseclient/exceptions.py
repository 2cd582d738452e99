"""
Custom exceptions for the shared base client.

These are raised by `BaseClient` and mapped by higher layers (for example
`steamauth`) into their own error taxonomy.
"""


class BaseClientError(Exception):
    """Base exception for all base client errors."""

    def __init__(self, message: str, *args, **kwargs):
        super().__init__(message, *args)
        self.message = message
        self.details = kwargs


class HTTPError(BaseClientError):
    """Raised when an HTTP request fails or returns an error status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: dict | str | None = None,
    ):
        super().__init__(message, status_code=status_code, response_body=response_body)
        self.status_code = status_code
        self.response_body = response_body


class ProxyError(BaseClientError):
    """Raised when there's an issue with the proxy configuration or connection."""

    pass


class ConfigurationError(BaseClientError):
    """Raised when there's an issue with client configuration."""

    pass


class TimeoutError(BaseClientError):
    """Raised when a request times out."""

    pass
