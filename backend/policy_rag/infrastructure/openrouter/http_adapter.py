"""Shared request plumbing for the OpenRouter adapters.

OpenRouter exposes an OpenAI-compatible API, so embeddings and chat
completions differ only in path, payload and response shape. Both adapters
POST through ``OpenRouterHttpAdapter._post_json``, which maps every failure
onto a domain ProviderError.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from policy_rag.domain.exceptions import TerminalProviderError
from policy_rag.infrastructure.openrouter.errors import (
    error_from_body,
    error_from_response,
    error_from_transport,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterHttpAdapter:
    """Base for adapters that make exactly one OpenRouter call per operation.

    An injected ``http_client`` is reused and left open; otherwise a client
    is created per call and closed afterwards.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        app_name: str = "Policy RAG",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._timeout = timeout
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return "openrouter"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST ``payload`` to ``path`` and return the decoded success body.

        Raises:
            TransientProviderError: On rate limiting (429 / rate_limit_exceeded).
            TerminalProviderError: On any other status, body error or transport failure.
        """
        url = f"{self._base_url}/{path.lstrip('/')}"

        async with self._client() as client:
            try:
                response = await client.post(url, headers=self._get_headers(), json=payload)
            except httpx.HTTPError as e:
                logger.error("OpenRouter %s request failed: %s", path, e)
                raise error_from_transport(self.provider_name, e) from e

        if response.status_code != 200:
            logger.error(
                "OpenRouter %s error %d: %s", path, response.status_code, response.text[:500]
            )
            raise error_from_response(self.provider_name, response)

        try:
            data = response.json()
        except ValueError as e:
            logger.error("OpenRouter %s returned a non-JSON body: %s", path, response.text[:500])
            raise TerminalProviderError(
                self.provider_name, 502, f"Malformed response body: {e}"
            ) from e
        if not isinstance(data, dict):
            logger.error("OpenRouter %s returned a non-object body: %s", path, response.text[:500])
            raise TerminalProviderError(
                self.provider_name, 502, "Malformed response body: expected a JSON object"
            )

        # OpenRouter can relay an upstream failure with status 200
        if "error" in data:
            logger.error("OpenRouter %s returned an error body: %s", path, data["error"])
            raise error_from_body(self.provider_name, data["error"])
        return data
