"""
Logical request and response values exchanged with BaseClient.

A `Request` describes what to send (method, path, headers, body) without
knowing anything about the underlying HTTP library. A `RawResponse` is the
transport's answer: status code, headers and the undecoded body text.
"""

import json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from .exceptions import InvalidJSONError


def _freeze(mapping: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Request:
    """
    Immutable description of an outbound HTTP request.

    Attributes:
        method: HTTP method (GET, POST, PUT, DELETE, ...).
        path: Endpoint path appended to the client's base URL.
        params: Query parameters.
        payload: JSON body, or None for no body.
        headers: Extra headers for this request only.
        cookies: Extra cookies for this request only.

    Example:
        >>> req = Request("GET", "/_mobile/account/positions")
        >>> req = req.with_headers({"X-SecurityToken": "abc"})
    """

    method: str
    path: str
    params: Mapping[str, Any] | None = None
    payload: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", _freeze(self.headers))
        object.__setattr__(self, "cookies", _freeze(self.cookies))

    def with_headers(self, headers: Mapping[str, str]) -> "Request":
        """Return a copy of this request with `headers` merged in."""
        return replace(self, headers={**self.headers, **headers})

    def with_cookies(self, cookies: Mapping[str, str]) -> "Request":
        """Return a copy of this request with `cookies` merged in."""
        return replace(self, cookies={**self.cookies, **cookies})


@dataclass(frozen=True)
class RawResponse:
    """
    Transport-level response.

    Header lookups are case-insensitive.
    """

    status_code: int
    headers: Mapping[str, str]
    text: str
    url: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "headers",
            _freeze({k.lower(): v for k, v in self.headers.items()}),
        )

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def json(self) -> Any:
        """
        Parse the body as JSON.

        Returns:
            The parsed body, or None when the body is empty.

        Raises:
            InvalidJSONError: If the body is not valid JSON.
        """
        if not self.text.strip():
            return None
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            raise InvalidJSONError(
                f"Response from {self.url or 'server'} is not valid JSON: {e}",
                body=self.text,
            ) from e
