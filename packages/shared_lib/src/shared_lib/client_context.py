"""
Client Context - Shared configuration and dependencies for clients.

Provides a centralized context object that holds shared configuration for
API clients built on the shared base client.
"""

import logging
from typing import Optional

from shared_lib.baseclient.client import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from shared_lib.baseclient.retry import NoRetry, RetryPolicy


class ClientContext:
    """
    Context object holding shared configuration for clients.

    ## Purpose:
    Encapsulates settings that several clients might need, avoiding parameter
    bloat and making dependency injection cleaner.

    ## Parameters:
    - `log_level` (int, optional): Default logging level for clients.
        - Default: `logging.INFO`
        - Can be overridden by individual clients
    - `timeout` (float, optional): Request timeout in seconds.
        - Default: `30.0`
    - `user_agent` (str, optional): User-Agent header value.
    - `retry_policy` (RetryPolicy | None, optional): Retry policy for
      read operations. Default: `NoRetry()`.

    ## Example:
    ```python
    from shared_lib.baseclient import ExponentialBackoff
    from shared_lib.client_context import ClientContext

    context = ClientContext(
        log_level=logging.DEBUG,
        retry_policy=ExponentialBackoff(max_attempts=3),
    )
    client = AvanzaClient(context=context)
    ```
    """

    def __init__(
        self,
        log_level: int = logging.INFO,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self.log_level = log_level
        self.timeout = timeout
        self.user_agent = user_agent
        self.retry_policy = retry_policy if retry_policy is not None else NoRetry()

    @property
    def retries_enabled(self) -> bool:
        """Check if the retry policy allows more than one attempt."""
        return self.retry_policy.max_attempts > 1
