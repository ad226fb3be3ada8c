"""
# Credentials and second-factor providers

Captures what the caller must supply to log in: a username/password pair and
a way to produce the second-factor code once the server has opened a
challenge.

The challenge delivery mechanism is not hard-coded. A provider is any
callable that receives a `SecondFactorChallenge` and returns the code, either
directly or as an awaitable:

```python
async def from_authenticator_app(challenge: SecondFactorChallenge) -> str:
    return await my_vault.current_totp()

await client.authenticate(Credentials("alice", "s3cret"), from_authenticator_app)
```
"""

import asyncio
import os
import re
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Union

import pyotp
from dotenv import load_dotenv
from pydantic import SecretStr

from shared_lib.baseclient.exceptions import ConfigurationError

USERNAME_ENV = "AVANZA_USERNAME"
PASSWORD_ENV = "AVANZA_PASSWORD"
TOTP_SECRET_ENV = "AVANZA_TOTP_SECRET"

SECOND_FACTOR_PATTERN = re.compile(r"^[A-Za-z0-9]{4,12}$")


@dataclass(frozen=True)
class Credentials:
    """Username/password pair. The password is never shown in reprs or logs."""

    username: str
    password: SecretStr

    def __init__(self, username: str, password: Union[str, SecretStr]) -> None:
        object.__setattr__(self, "username", username)
        if not isinstance(password, SecretStr):
            password = SecretStr(password)
        object.__setattr__(self, "password", password)

    @property
    def is_complete(self) -> bool:
        """Both username and password are non-blank."""
        return bool(self.username and self.username.strip()) and bool(
            self.password.get_secret_value().strip()
        )

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Credentials":
        """
        Create credentials from environment variables.

        ## Environment Variables:
        - `AVANZA_USERNAME`
        - `AVANZA_PASSWORD`

        A `.env` file in the working directory is loaded first unless
        `load_dotenv_file` is False. Values already in the environment win.

        ## Raises:
        - `ConfigurationError`: If either variable is missing or blank
        """
        if load_dotenv_file:
            load_dotenv()

        username = os.environ.get(USERNAME_ENV, "")
        password = os.environ.get(PASSWORD_ENV, "")

        missing = [
            name
            for name, value in ((USERNAME_ENV, username), (PASSWORD_ENV, password))
            if not value.strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Missing Avanza credentials: set {', '.join(missing)}"
            )

        return cls(username, password)


@dataclass(frozen=True)
class SecondFactorChallenge:
    """
    An open second-factor challenge.

    Attributes:
        method: Second-factor method requested by the server (e.g. "TOTP")
        transaction_id: Server reference tying the code to this login attempt
        issued_at: `time.monotonic()` when the challenge was received
    """

    method: str
    transaction_id: str
    issued_at: float = field(default_factory=time.monotonic)

    def age(self) -> float:
        """Seconds since the challenge was received."""
        return time.monotonic() - self.issued_at


SecondFactorProvider = Callable[[SecondFactorChallenge], Union[str, Awaitable[str]]]


def is_well_formed_code(code: object) -> bool:
    return isinstance(code, str) and bool(SECOND_FACTOR_PATTERN.match(code))


class StaticCode:
    """Provider that always answers with a code known up front."""

    def __init__(self, code: str) -> None:
        self._code = code

    def __call__(self, challenge: SecondFactorChallenge) -> str:
        return self._code

    def __repr__(self) -> str:
        return "StaticCode(code=***)"


class TotpCode:
    """
    Provider that derives the current code from a base32 TOTP secret.

    This is the same secret an authenticator app is seeded with, so logins
    can run unattended.

    ## Raises:
    - `ConfigurationError`: If the secret is not valid base32
    """

    def __init__(self, secret: Union[str, SecretStr]) -> None:
        if isinstance(secret, SecretStr):
            secret = secret.get_secret_value()
        self._totp = pyotp.TOTP(secret.replace(" ", "").upper())
        try:
            self._totp.now()
        except ValueError as e:
            raise ConfigurationError(f"Invalid TOTP secret: {e}") from e

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> Optional["TotpCode"]:
        """Create a provider from `AVANZA_TOTP_SECRET`, or None when it is unset."""
        if load_dotenv_file:
            load_dotenv()

        secret = os.environ.get(TOTP_SECRET_ENV, "").strip()
        if not secret:
            return None
        return cls(secret)

    def __call__(self, challenge: SecondFactorChallenge) -> str:
        return self._totp.now()

    def __repr__(self) -> str:
        return "TotpCode(secret=***)"


async def prompt_for_code(challenge: SecondFactorChallenge) -> str:
    """Ask for the code on stdin without blocking the event loop."""
    prompt = f"Enter {challenge.method} code: "
    code = await asyncio.to_thread(input, prompt)
    return code.strip()
