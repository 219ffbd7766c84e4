"""Mapping of OpenRouter HTTP failures onto domain provider errors."""

from typing import Any

import httpx

from policy_rag.domain.exceptions import (
    ProviderError,
    TerminalProviderError,
    TransientProviderError,
)

_RATE_LIMIT_STATUS = 429
_RATE_LIMIT_CODE = "rate_limit_exceeded"


def classify_provider_error(
    provider: str,
    status_code: int,
    message: str,
    code: str | None = None,
) -> ProviderError:
    """Build a Transient error for rate limiting, a Terminal one otherwise."""
    if status_code == _RATE_LIMIT_STATUS or code == _RATE_LIMIT_CODE:
        return TransientProviderError(provider, status_code, message, code)
    return TerminalProviderError(provider, status_code, message, code)


def error_from_response(provider: str, response: httpx.Response) -> ProviderError:
    """Build a ProviderError from a non-200 httpx Response."""
    message = response.text[:500]
    code: str | None = None
    try:
        body = response.json()
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        message = error.get("message", message)
        raw_code = error.get("code")
        code = str(raw_code) if raw_code is not None else None
    return classify_provider_error(provider, response.status_code, message, code)


def error_from_transport(provider: str, exc: httpx.HTTPError) -> ProviderError:
    """Timeouts and connection failures are never retried."""
    status = 504 if isinstance(exc, httpx.TimeoutException) else 502
    return TerminalProviderError(provider, status, f"{type(exc).__name__}: {exc}")


def error_from_body(provider: str, error: Any) -> ProviderError:
    """Build a ProviderError from an ``{"error": {...}}`` body sent with status 200."""
    if not isinstance(error, dict):
        return TerminalProviderError(provider, 500, str(error) or "Unknown error")
    raw_code = error.get("code")
    status = raw_code if isinstance(raw_code, int) else 500
    code = str(raw_code) if raw_code is not None and not isinstance(raw_code, int) else None
    return classify_provider_error(provider, status, error.get("message", "Unknown error"), code)
