"""OpenRouter API client — implements the ChatProvider interface.

Sends non-streaming chat completions for answer synthesis. The system
prompt travels as the first message; OpenRouter forwards it to the
underlying model in that model's native form.
"""

import logging

from policy_rag.application.interfaces.chat_provider import ChatProvider
from policy_rag.domain.entities import ChatMessage, ChatCompletionResult, TokenUsage
from policy_rag.domain.exceptions import TerminalProviderError
from policy_rag.infrastructure.openrouter.http_adapter import OpenRouterHttpAdapter

logger = logging.getLogger(__name__)


class OpenRouterClient(OpenRouterHttpAdapter, ChatProvider):
    """Infrastructure adapter — connects to the OpenRouter chat completions API."""

    def _build_payload(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict:
        payload: dict = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        return payload

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletionResult:
        """Send a non-streaming chat completion to OpenRouter."""
        data = await self._post_json(
            "chat/completions",
            self._build_payload(messages, model, temperature=temperature, max_tokens=max_tokens),
        )
        result = self._parse_completion_response(data)

        if result.finish_reason == "length":
            logger.warning(
                "Completion from %s hit max_tokens=%s; answer is truncated",
                result.model,
                max_tokens,
            )
        return result

    def _parse_completion_response(self, data: dict) -> ChatCompletionResult:
        choices = data.get("choices") or []
        if not choices:
            raise TerminalProviderError(
                provider=self.provider_name,
                status_code=502,
                message="No choices in response",
            )

        try:
            choice = choices[0]
            message = choice.get("message") or {}
            usage = data.get("usage") or {}
            return ChatCompletionResult(
                model=data.get("model", ""),
                content=message.get("content") or "",
                finish_reason=choice.get("finish_reason") or "stop",
                usage=TokenUsage(
                    prompt_tokens=usage.get("prompt_tokens", 0),
                    completion_tokens=usage.get("completion_tokens", 0),
                    total_tokens=usage.get("total_tokens", 0),
                    cost=usage.get("cost"),
                ),
                provider=self.provider_name,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise TerminalProviderError(
                provider=self.provider_name,
                status_code=502,
                message=f"Malformed completion response: {e!r}",
            ) from e
