"""Unit tests for the rate-limit RetryExecutor."""

import pytest

from policy_rag.application.services.retry_executor import (
    RetryExecutor,
    RetryOptions,
    execute_with_retry,
    is_rate_limit_error,
)
from policy_rag.domain.exceptions import (
    TerminalProviderError,
    TransientProviderError,
    ValidationError,
)


# ── Helpers ──


class RecordingSleep:
    """Replaces asyncio.sleep — records requested delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FlakyOperation:
    """Fails with the given errors in order, then returns ``result``."""

    def __init__(self, errors: list[Exception], result: str = "ok"):
        self._errors = list(errors)
        self._result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self._result


def _rate_limited() -> TransientProviderError:
    return TransientProviderError("openrouter", 429, "Rate limit exceeded")


class StatusError(Exception):
    def __init__(self, status: int):
        super().__init__(f"HTTP {status}")
        self.status = status


# ── Classification ──


def test_is_rate_limit_error_recognises_429_code_and_message():
    assert is_rate_limit_error(_rate_limited())
    assert is_rate_limit_error(StatusError(429))
    assert is_rate_limit_error(TerminalProviderError("x", 400, "quota", code="rate_limit_exceeded"))
    assert is_rate_limit_error(RuntimeError("Rate Limit reached for requests"))


def test_is_rate_limit_error_rejects_other_errors():
    assert not is_rate_limit_error(StatusError(500))
    assert not is_rate_limit_error(TerminalProviderError("x", 401, "invalid api key"))
    assert not is_rate_limit_error(ValueError("boom"))


# ── Execution ──


async def test_returns_result_without_retrying():
    sleep = RecordingSleep()
    operation = FlakyOperation([])

    result = await RetryExecutor(sleep=sleep).execute(operation)

    assert result == "ok"
    assert operation.calls == 1
    assert sleep.delays == []


async def test_succeeds_on_third_attempt_after_two_rate_limits():
    sleep = RecordingSleep()
    operation = FlakyOperation([_rate_limited(), _rate_limited()], result="vectors")

    result = await RetryExecutor(RetryOptions(max_retries=3), sleep=sleep).execute(operation)

    assert result == "vectors"
    assert operation.calls == 3
    assert sleep.delays == [1.0, 2.0]


async def test_exhaustion_propagates_last_error_after_max_retries():
    sleep = RecordingSleep()
    errors = [_rate_limited() for _ in range(4)]
    last = errors[-1]
    operation = FlakyOperation(errors)

    with pytest.raises(TransientProviderError) as exc_info:
        await RetryExecutor(RetryOptions(max_retries=3), sleep=sleep).execute(operation)

    assert exc_info.value is last
    assert operation.calls == 4
    assert sleep.delays == [1.0, 2.0, 4.0]


async def test_backoff_is_capped_at_max_delay():
    sleep = RecordingSleep()
    operation = FlakyOperation([_rate_limited() for _ in range(5)])
    options = RetryOptions(max_retries=4, initial_delay=1.0, max_delay=3.0, backoff_multiplier=2.0)

    with pytest.raises(TransientProviderError):
        await RetryExecutor(options, sleep=sleep).execute(operation)

    assert sleep.delays == [1.0, 2.0, 3.0, 3.0]


async def test_non_rate_limit_error_is_not_retried():
    sleep = RecordingSleep()
    operation = FlakyOperation([TerminalProviderError("openrouter", 401, "invalid api key")])

    with pytest.raises(TerminalProviderError):
        await RetryExecutor(sleep=sleep).execute(operation)

    assert operation.calls == 1
    assert sleep.delays == []


async def test_zero_retries_means_single_attempt():
    sleep = RecordingSleep()
    operation = FlakyOperation([_rate_limited()])

    with pytest.raises(TransientProviderError):
        await RetryExecutor(RetryOptions(max_retries=0), sleep=sleep).execute(operation)

    assert operation.calls == 1


async def test_retry_logs_warning_with_delay(caplog):
    sleep = RecordingSleep()
    operation = FlakyOperation([_rate_limited()])

    with caplog.at_level("WARNING"):
        await RetryExecutor(sleep=sleep).execute(operation)

    assert "Rate limit hit, retrying in 1000ms (attempt 1/3)" in caplog.text


async def test_execute_with_retry_convenience_wrapper():
    result = await execute_with_retry(FlakyOperation([], result=42))
    assert result == 42


def test_retry_options_reject_negative_retries():
    with pytest.raises(ValidationError):
        RetryOptions(max_retries=-1)
