"""Retry executor — re-runs an async operation while it fails with rate limiting.

Only rate-limit failures are retried; every other error propagates on the
first occurrence. Delays grow exponentially and are capped:

    delay(n) = min(initial_delay * backoff_multiplier ** n, max_delay)

where ``n`` is the zero-based index of the failed attempt.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from policy_rag.domain.exceptions import TransientProviderError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RATE_LIMIT_STATUS = 429
_RATE_LIMIT_CODE = "rate_limit_exceeded"


@dataclass(frozen=True)
class RetryOptions:
    max_retries: int = 3
    initial_delay: float = 1.0  # seconds
    max_delay: float = 8.0  # seconds
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValidationError("max_retries must be >= 0")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValidationError("retry delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValidationError("backoff_multiplier must be >= 1")


def is_rate_limit_error(error: BaseException) -> bool:
    """Classify an error as rate limiting.

    True for a TransientProviderError, for any error carrying HTTP status 429
    or the ``rate_limit_exceeded`` code, and for errors whose message
    mentions "rate limit".
    """
    if isinstance(error, TransientProviderError):
        return True

    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    if status == _RATE_LIMIT_STATUS:
        return True

    if getattr(error, "code", None) == _RATE_LIMIT_CODE:
        return True

    message = getattr(error, "message", None) or str(error)
    return "rate limit" in str(message).lower()


class RetryExecutor:
    """Runs async operations under the configured rate-limit retry policy."""

    def __init__(
        self,
        options: RetryOptions | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._options = options or RetryOptions()
        self._sleep = sleep

    @property
    def options(self) -> RetryOptions:
        return self._options

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation``, retrying it on rate-limit failures.

        Raises:
            The operation's own error, unchanged: immediately when it is not a
            rate-limit error, or after ``max_retries`` retries when it is.
        """
        opts = self._options
        retrying = AsyncRetrying(
            stop=stop_after_attempt(opts.max_retries + 1),
            wait=wait_exponential(
                multiplier=opts.initial_delay,
                exp_base=opts.backoff_multiplier,
                max=opts.max_delay,
            ),
            retry=retry_if_exception(is_rate_limit_error),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                return await operation()

        raise AssertionError("unreachable")  # pragma: no cover

    def _log_retry(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Rate limit hit, retrying in %dms (attempt %d/%d)",
            int(delay * 1000),
            retry_state.attempt_number,
            self._options.max_retries,
        )


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    options: RetryOptions | None = None,
) -> T:
    """Convenience wrapper — run ``operation`` with a one-off RetryExecutor."""
    return await RetryExecutor(options).execute(operation)
