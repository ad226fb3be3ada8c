"""
Exceptions raised by the Avanza client.

Two families are exposed to callers:

- `AuthError` for anything that goes wrong while running the login handshake.
- `ApiError` for anything that goes wrong while calling an account or market
  operation once authenticated.

Both derive from `AvanzaError`, so ``except AvanzaError`` catches everything
the client raises on a remote-service failure.
"""

from typing import Any


class AvanzaError(Exception):
    """Base exception for all Avanza client errors.

    Attributes:
        message: Human readable description of the error
        details: Extra context for diagnostics
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


# -----------------------------------Authentication-----------------------------------#


class AuthError(AvanzaError):
    """Base class for login handshake failures.

    After any AuthError the session manager is back in the unauthenticated
    state.
    """

    pass


class InvalidCredentials(AuthError):
    """Username or password is missing, or was refused by the server."""

    pass


class SecondFactorRejected(AuthError):
    """The second-factor code was refused by the server or is malformed."""

    pass


class SecondFactorExpired(AuthError):
    """The second-factor code arrived after its validity window."""

    pass


class UnsupportedSecondFactorMethod(AuthError):
    """The server asked for a second-factor method this client cannot handle.

    Example:
        >>> try:
        ...     await client.authenticate(credentials, provider)
        ... except UnsupportedSecondFactorMethod as e:
        ...     print(f"Server wants {e.method}")
    """

    def __init__(self, method: str) -> None:
        super().__init__(f"Can not handle authentication method {method!r}", method=method)
        self.method = method


class AuthTransportFailure(AuthError):
    """The handshake failed for a transport or protocol reason.

    Attributes:
        cause: The underlying transport or decode error
    """

    def __init__(self, message: str, cause: Exception) -> None:
        super().__init__(message, cause=cause)
        self.cause = cause

    @property
    def status_code(self) -> int | None:
        return getattr(self.cause, "status_code", None)


# -----------------------------------API calls-----------------------------------#


class ApiError(AvanzaError):
    """Base class for failures of authenticated operations."""

    pass


class NotAuthenticated(ApiError):
    """An authenticated operation was called without a live session."""

    def __init__(self, message: str = "Not authenticated - call authenticate() first") -> None:
        super().__init__(message)


class SessionExpired(ApiError):
    """The server no longer accepts the session. Call authenticate() again."""

    def __init__(self, message: str = "Session expired - call authenticate() again") -> None:
        super().__init__(message)


class ApiTransportError(ApiError):
    """An operation failed at the transport level.

    Attributes:
        cause: The underlying transport error
        status_code: HTTP status if the server answered, else None
    """

    def __init__(self, message: str, cause: Exception) -> None:
        super().__init__(message, cause=cause)
        self.cause = cause

    @property
    def status_code(self) -> int | None:
        return getattr(self.cause, "status_code", None)


class MalformedResponse(ApiError):
    """A response could not be decoded into the expected record.

    Attributes:
        field: Wire name of the offending field
        raw_value: The value found in the payload (None when missing)
        path: Full location of the field inside the payload
    """

    def __init__(self, field: str, raw_value: Any, path: str | None = None, reason: str = "") -> None:
        path = path or field
        message = f"Malformed response at {path!r}: {reason or 'unexpected value'} (got {raw_value!r})"
        super().__init__(message, field=field, raw_value=raw_value, path=path)
        self.field = field
        self.raw_value = raw_value
        self.path = path
        self.reason = reason
