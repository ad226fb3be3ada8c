"""
Pluggable retry/backoff policies.

BaseClient itself never retries. Callers that want retries wrap their
transport calls with `RetryPolicy.run()`. Only connection and timeout
failures are retried; a response with a status code is never retried,
because the server already answered.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .exceptions import ConnectionFailedError, RequestTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    ConnectionFailedError,
    RequestTimeoutError,
)


class RetryPolicy:
    """Base policy: decides whether and when to retry a failed call."""

    max_attempts: int = 1

    def should_retry(self, error: Exception, attempt: int) -> bool:
        return attempt < self.max_attempts and isinstance(error, RETRYABLE_ERRORS)

    def delay(self, attempt: int) -> float:
        return 0.0

    async def run(self, call: Callable[[], Awaitable[T]]) -> T:
        """Run `call`, retrying while `should_retry` allows it."""
        attempt = 1
        while True:
            try:
                return await call()
            except Exception as e:
                if not self.should_retry(e, attempt):
                    raise
                wait = self.delay(attempt)
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} failed ({e}), "
                    f"retrying in {wait:.2f}s"
                )
                await asyncio.sleep(wait)
                attempt += 1


class NoRetry(RetryPolicy):
    """Never retry. This is the default."""

    max_attempts = 1


class ExponentialBackoff(RetryPolicy):
    """
    Retry with exponential backoff.

    The wait before attempt ``n + 1`` is ``base_delay * factor ** (n - 1)``,
    capped at ``max_delay``.

    Example:
        >>> policy = ExponentialBackoff(max_attempts=3, base_delay=0.5)
        >>> [policy.delay(n) for n in (1, 2)]
        [0.5, 1.0]
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        factor: float = 2.0,
        max_delay: float = 10.0,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.factor = factor
        self.max_delay = max_delay

    def delay(self, attempt: int) -> float:
        return min(self.base_delay * (self.factor ** (attempt - 1)), self.max_delay)
