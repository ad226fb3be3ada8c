"""
Base HTTP client for building API clients.

This package provides a flexible and extensible base class for creating
async HTTP clients with built-in support for proxies, timeouts, pluggable
retry policies and typed transport errors.
"""

from .client import BaseClient as Client
from .exceptions import (
    ClientError,
    ConfigurationError,
    ConnectionFailedError,
    HTTPStatusError,
    InvalidJSONError,
    ProxyError,
    RequestTimeoutError,
    TransportError,
)
from .request import RawResponse, Request
from .retry import ExponentialBackoff, NoRetry, RetryPolicy

__version__ = "0.1.0"
__all__ = [
    "Client",
    "Request",
    "RawResponse",
    "RetryPolicy",
    "NoRetry",
    "ExponentialBackoff",
    "ClientError",
    "ConfigurationError",
    "TransportError",
    "HTTPStatusError",
    "RequestTimeoutError",
    "ConnectionFailedError",
    "ProxyError",
    "InvalidJSONError",
]
