"""
Custom exceptions for the shared HTTP transport.

This module provides the transport error taxonomy raised by BaseClient.
The transport never decides what a status code means for the caller; it
only preserves enough context (status code, raw body) for upstream
classification.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .request import RawResponse


class ClientError(Exception):
    """Base exception for all shared client errors."""

    def __init__(self, message: str, *args, **kwargs):
        super().__init__(message, *args)
        self.message = message
        self.details = kwargs


class ConfigurationError(ClientError):
    """Raised when there's an issue with client configuration."""

    pass


class TransportError(ClientError):
    """Raised when a request could not produce a successful response."""

    pass


class HTTPStatusError(TransportError):
    """Raised when the server answers with a non-2xx status.

    The complete response is kept so callers can inspect the status code,
    headers and raw body.
    """

    def __init__(self, message: str, response: "RawResponse"):
        super().__init__(message, status_code=response.status_code)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def response_body(self) -> str:
        return self.response.text


class RequestTimeoutError(TransportError):
    """Raised when a request times out."""

    pass


class ConnectionFailedError(TransportError):
    """Raised when the connection to the server could not be established."""

    pass


class ProxyError(ConnectionFailedError):
    """Raised when there's an issue with the proxy configuration or connection."""

    pass


class InvalidJSONError(TransportError):
    """Raised when a response body is not valid JSON."""

    def __init__(self, message: str, body: str):
        super().__init__(message, body=body)
        self.body = body
