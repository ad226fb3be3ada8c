"""
# Session Manager for the Avanza API

Owns the authentication state machine and is the only place that ever sees
the raw session tokens.

## States:
```
Unauthenticated ──credentials──▶ AwaitingSecondFactor ──code──▶ Authenticated
       ▲                                  │                          │
       └────────── any failure ◀──────────┘        401/403 on a call ▼
                                                                  Expired
```

## Authentication Flow:
1. **Step 1**: POST username/password → server opens a second-factor
   transaction (`twoFactorLogin.transactionId`)
2. **Second factor**: the caller-supplied provider produces the code
3. **Step 2**: POST the code with the transaction cookie → server answers with
   `X-SecurityToken` header and `authenticationSession` in the body
4. **Use**: `attach()` adds both as headers to outbound requests

Expiry is detected lazily: the server does not advertise a session lifetime,
so a 401/403 on an authenticated call moves the manager to `Expired`. There is
no automatic re-authentication; the caller runs `authenticate()` again.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Union

from shared_lib.baseclient.exceptions import HTTPStatusError, InvalidJSONError, TransportError
from shared_lib.baseclient.request import RawResponse, Request
from shared_lib.pydantic import APIBaseModel

from avanza.credentials import (
    Credentials,
    SecondFactorChallenge,
    SecondFactorProvider,
    is_well_formed_code,
)
from avanza.exceptions import (
    AuthTransportFailure,
    InvalidCredentials,
    MalformedResponse,
    NotAuthenticated,
    SecondFactorExpired,
    SecondFactorRejected,
    SessionExpired,
    UnsupportedSecondFactorMethod,
)
from avanza.models.base import decode
from avanza.urls import (
    AUTHENTICATION_SESSION_HEADER,
    SECURITY_TOKEN_HEADER,
    TWO_FACTOR_TRANSACTION_COOKIE,
    AvanzaApiUrls,
)

if TYPE_CHECKING:
    from shared_lib.baseclient.client import BaseClient

logger = logging.getLogger(__name__)

# Sent as a string, as the web client does
MAX_INACTIVE_MINUTES = "3600"
DEFAULT_SECOND_FACTOR_TIMEOUT = 120.0

SECOND_FACTOR_ENDPOINTS = {"TOTP": AvanzaApiUrls.LOGIN_TOTP}
SESSION_INVALID_STATUSES = frozenset({401, 403})
CREDENTIALS_REFUSED_STATUSES = frozenset({401, 403})
CODE_REFUSED_STATUSES = frozenset({400, 401, 403})
CODE_EXPIRED_STATUSES = frozenset({408, 410})


# -----------------------------------Wire payloads-----------------------------------#


class TwoFactorLogin(APIBaseModel):
    method: str
    transaction_id: str


class CredentialsResponse(APIBaseModel):
    two_factor_login: TwoFactorLogin


class SecondFactorResponse(APIBaseModel):
    authentication_session: str
    customer_id: str
    push_subscription_id: str | None = None
    registration_complete: bool | None = None


# -----------------------------------Session and states-----------------------------------#


@dataclass(frozen=True)
class SessionInfo:
    """Token-free description of the live session, safe to hand to callers."""

    customer_id: str
    push_subscription_id: str | None
    registration_complete: bool | None
    authenticated_at: datetime


@dataclass(frozen=True)
class _Session:
    authentication_session: str = field(repr=False)
    security_token: str = field(repr=False)
    customer_id: str
    push_subscription_id: str | None = None
    registration_complete: bool | None = None
    authenticated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def headers(self) -> dict[str, str]:
        return {
            AUTHENTICATION_SESSION_HEADER: self.authentication_session,
            SECURITY_TOKEN_HEADER: self.security_token,
        }

    def info(self) -> SessionInfo:
        return SessionInfo(
            customer_id=self.customer_id,
            push_subscription_id=self.push_subscription_id,
            registration_complete=self.registration_complete,
            authenticated_at=self.authenticated_at,
        )


@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class AwaitingSecondFactor:
    challenge: SecondFactorChallenge


@dataclass(frozen=True)
class Authenticated:
    session: _Session = field(repr=False)


@dataclass(frozen=True)
class Expired:
    customer_id: str


SessionState = Union[Unauthenticated, AwaitingSecondFactor, Authenticated, Expired]


class SessionManager:
    """
    Single-writer owner of the Avanza session.

    ## Guarantees:
    - `authenticate()` returns with the manager either `Authenticated` or
      `Unauthenticated`, never `AwaitingSecondFactor`, including when the
      awaiting task is cancelled
    - A session is committed only once the whole handshake succeeded
    - Only one handshake runs at a time per manager
    - Raw tokens never leave this object; other components use `attach()`

    ## Example:
    ```python
    manager = SessionManager(transport)
    info = await manager.authenticate(Credentials("alice", "pw"), StaticCode("123456"))
    request = manager.attach(Request("GET", "/_mobile/account/positions"))
    ```
    """

    def __init__(
        self,
        transport: "BaseClient",
        second_factor_timeout: float = DEFAULT_SECOND_FACTOR_TIMEOUT,
    ) -> None:
        """
        ## Args:
        - `transport` (BaseClient): Transport used for the login requests
        - `second_factor_timeout` (float): Seconds the provider has to produce
          a code once the challenge is open (default: 120)
        """
        if second_factor_timeout <= 0:
            raise ValueError("second_factor_timeout must be positive")

        self._transport = transport
        self.second_factor_timeout = second_factor_timeout
        self._state: SessionState = Unauthenticated()
        self._lock = asyncio.Lock()

    # -----------------------------------Status-----------------------------------#

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self._state, Authenticated)

    @property
    def handshake_in_progress(self) -> bool:
        return self._lock.locked()

    @property
    def info(self) -> SessionInfo | None:
        if isinstance(self._state, Authenticated):
            return self._state.session.info()
        return None

    @property
    def customer_id(self) -> str | None:
        if isinstance(self._state, Authenticated):
            return self._state.session.customer_id
        if isinstance(self._state, Expired):
            return self._state.customer_id
        return None

    # -----------------------------------Handshake-----------------------------------#

    async def authenticate(
        self,
        credentials: Credentials,
        second_factor_provider: SecondFactorProvider,
    ) -> SessionInfo:
        """
        Run the full two-step handshake and replace any prior session.

        ## Returns:
        - `SessionInfo`: description of the new session

        ## Raises:
        - `InvalidCredentials`: credentials blank or refused (401/403)
        - `UnsupportedSecondFactorMethod`: server asked for an unknown method
        - `SecondFactorRejected`: code malformed or refused
        - `SecondFactorExpired`: code produced or submitted too late
        - `AuthTransportFailure`: connection, timeout, other status, bad payload
        """
        async with self._lock:
            self._state = Unauthenticated()
            committed = False
            try:
                if not credentials.is_complete:
                    raise InvalidCredentials(
                        "Username and password required for authentication"
                    )

                logger.info("Starting Avanza authentication flow...")
                challenge = await self._submit_credentials(credentials)
                self._state = AwaitingSecondFactor(challenge)

                code = await self._obtain_code(second_factor_provider, challenge)
                session = await self._submit_second_factor(challenge, code)

                self._state = Authenticated(session)
                committed = True
            finally:
                if not committed:
                    self._state = Unauthenticated()

        logger.info(f"Authentication successful for customer {session.customer_id}")
        return session.info()

    async def _submit_credentials(self, credentials: Credentials) -> SecondFactorChallenge:
        request = Request(
            "POST",
            AvanzaApiUrls.LOGIN_STEP1,
            payload={
                "username": credentials.username,
                "password": credentials.password.get_secret_value(),
                "maxInactiveMinutes": MAX_INACTIVE_MINUTES,
            },
        )

        try:
            logger.debug(f"Sending login step 1 request for: {credentials.username}")
            response = await self._transport.send(request)
        except HTTPStatusError as e:
            if e.status_code in CREDENTIALS_REFUSED_STATUSES:
                logger.error(f"Login step 1 refused - Status: {e.status_code}")
                raise InvalidCredentials(
                    "Login refused: invalid username or password",
                    status_code=e.status_code,
                ) from e
            raise AuthTransportFailure(
                f"Login step 1 failed with status {e.status_code}", e
            ) from e
        except TransportError as e:
            raise AuthTransportFailure(f"Login step 1 failed: {e.message}", e) from e

        body = self._decode_step(CredentialsResponse, response, step=1)
        login = body.two_factor_login
        method = login.method.upper()
        if method not in SECOND_FACTOR_ENDPOINTS:
            logger.error(f"Unsupported second-factor method: {login.method}")
            raise UnsupportedSecondFactorMethod(login.method)

        logger.debug(f"Second-factor challenge opened ({method})")
        return SecondFactorChallenge(method=method, transaction_id=login.transaction_id)

    async def _obtain_code(
        self,
        provider: SecondFactorProvider,
        challenge: SecondFactorChallenge,
    ) -> str:
        try:
            code = await asyncio.wait_for(
                self._call_provider(provider, challenge),
                timeout=self.second_factor_timeout,
            )
        except asyncio.TimeoutError:
            raise SecondFactorExpired(
                f"No second-factor code within {self.second_factor_timeout:g}s"
            ) from None

        # A blocking provider cannot be interrupted by wait_for
        if challenge.age() > self.second_factor_timeout:
            raise SecondFactorExpired(
                f"Second-factor code arrived after {challenge.age():.1f}s, "
                f"limit is {self.second_factor_timeout:g}s"
            )

        if not is_well_formed_code(code):
            raise SecondFactorRejected("Second-factor code is malformed")
        return code

    @staticmethod
    async def _call_provider(
        provider: SecondFactorProvider, challenge: SecondFactorChallenge
    ) -> str:
        result = provider(challenge)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _submit_second_factor(
        self, challenge: SecondFactorChallenge, code: str
    ) -> _Session:
        request = Request(
            "POST",
            SECOND_FACTOR_ENDPOINTS[challenge.method],
            payload={"method": challenge.method, "totpCode": code},
            cookies={TWO_FACTOR_TRANSACTION_COOKIE: challenge.transaction_id},
        )

        try:
            logger.debug("Sending login step 2 request with second-factor code")
            response = await self._transport.send(request)
        except HTTPStatusError as e:
            if self._signals_code_expiry(e.response):
                raise SecondFactorExpired(
                    "Second-factor code expired", status_code=e.status_code
                ) from e
            if e.status_code in CODE_REFUSED_STATUSES:
                raise SecondFactorRejected(
                    "Second-factor code refused", status_code=e.status_code
                ) from e
            raise AuthTransportFailure(
                f"Login step 2 failed with status {e.status_code}", e
            ) from e
        except TransportError as e:
            raise AuthTransportFailure(f"Login step 2 failed: {e.message}", e) from e

        security_token = response.header(SECURITY_TOKEN_HEADER)
        if not security_token:
            missing = MalformedResponse(
                SECURITY_TOKEN_HEADER, None, reason="missing response header"
            )
            raise AuthTransportFailure(
                "Login step 2 response has no security token", missing
            )

        body = self._decode_step(SecondFactorResponse, response, step=2)
        return _Session(
            authentication_session=body.authentication_session,
            security_token=security_token,
            customer_id=body.customer_id,
            push_subscription_id=body.push_subscription_id,
            registration_complete=body.registration_complete,
        )

    @staticmethod
    def _signals_code_expiry(response: RawResponse) -> bool:
        if response.status_code in CODE_EXPIRED_STATUSES:
            return True
        return (
            response.status_code in CODE_REFUSED_STATUSES
            and "expired" in response.text.lower()
        )

    @staticmethod
    def _decode_step(model, response: RawResponse, step: int):
        try:
            return decode(model, response.json())
        except (MalformedResponse, InvalidJSONError) as e:
            raise AuthTransportFailure(
                f"Unexpected login step {step} response: {e}", e
            ) from e

    # -----------------------------------Session use-----------------------------------#

    def attach(self, request: Request) -> Request:
        """
        Return `request` decorated with the session headers.

        ## Raises:
        - `NotAuthenticated`: no session (or a handshake is still running)
        - `SessionExpired`: the server invalidated the last session
        """
        state = self._state
        if isinstance(state, Authenticated):
            return request.with_headers(state.session.headers())
        if isinstance(state, Expired):
            raise SessionExpired()
        raise NotAuthenticated()

    def mark_expired_if(
        self, response: RawResponse, sent_with: Request | None = None
    ) -> bool:
        """
        Inspect a response to an authenticated call.

        ## Args:
        - `response`: the raw response (usually from an HTTPStatusError)
        - `sent_with`: the attached request, used to ignore answers that
          belong to a session which has since been replaced

        ## Returns:
        - `bool`: True if the response says the session is no longer valid
        """
        if response.status_code not in SESSION_INVALID_STATUSES:
            return False

        state = self._state
        sent_token = sent_with.headers.get(SECURITY_TOKEN_HEADER) if sent_with is not None else None
        if isinstance(state, Expired):
            return True
        if not isinstance(state, Authenticated):
            # Signed for a session that was logged out or replaced mid-flight
            return sent_token is not None

        if sent_with is not None and sent_token != state.session.security_token:
            # Stale answer for a previous session, current one stays live
            return True

        logger.warning(
            f"Session for customer {state.session.customer_id} rejected "
            f"with status {response.status_code}, marking expired"
        )
        self._state = Expired(customer_id=state.session.customer_id)
        return True

    def logout_request(self) -> Request | None:
        """Build the server-side logout call for the live session, if any."""
        state = self._state
        if not isinstance(state, Authenticated):
            return None
        path = AvanzaApiUrls.LOGOUT.format(
            session_id=state.session.authentication_session
        )
        return self.attach(Request("DELETE", path))

    def logout(self) -> None:
        """Drop the session locally."""
        self._state = Unauthenticated()
        logger.info("Logged out - session data cleared")
