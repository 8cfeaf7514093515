"""Single retry policy for calls to the embedding provider.

Retries only ProviderErrors flagged as retryable (timeouts, 429, 5xx) with
exponential backoff, then re-raises the last error.
"""

import logging
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from shared.errors import ProviderError
from shared.helper.HelperConfig import HelperConfig

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """Return True for transient provider failures."""
    return isinstance(error, ProviderError) and error.retryable


class RetryPolicy:
    """Bounded exponential-backoff retry, configured from the environment.

    Config:
        EMBED_RETRY_ATTEMPTS: total attempts including the first (default 3).
        EMBED_RETRY_MIN_WAIT: first backoff in seconds (default 0.5).
        EMBED_RETRY_MAX_WAIT: backoff ceiling in seconds (default 8).
    """

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self.attempts = helper_config.get_int_val("EMBED_RETRY_ATTEMPTS", default=3, minimum=1)
        self.min_wait = float(helper_config.get_number_val("EMBED_RETRY_MIN_WAIT", default=0.5))
        self.max_wait = float(helper_config.get_number_val("EMBED_RETRY_MAX_WAIT", default=8))

    def _build(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.min_wait, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(self.logging, logging.WARNING),
            reraise=True,
        )

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await fn(*args, **kwargs), retrying transient provider failures.

        Returns:
            T: Whatever fn returns.

        Raises:
            ProviderError: After the last attempt failed, or immediately if not retryable.
            Exception: Any non-provider error from fn, unretried.
        """
        async for attempt in self._build():
            with attempt:
                return await fn(*args, **kwargs)
        raise RuntimeError("unreachable")  # AsyncRetrying re-raises on exhaustion
