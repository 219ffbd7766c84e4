"""OpenRouter-based embedding provider — calls the /embeddings endpoint.

Default model: openai/text-embedding-3-small (1536 dimensions).
"""

import logging

from policy_rag.application.interfaces.embedding_provider import EmbeddingProvider
from policy_rag.domain.exceptions import TerminalProviderError
from policy_rag.infrastructure.openrouter.http_adapter import OpenRouterHttpAdapter

logger = logging.getLogger(__name__)


class OpenRouterEmbeddingProvider(OpenRouterHttpAdapter, EmbeddingProvider):
    """Infrastructure adapter — generates embeddings via OpenRouter /embeddings API.

    Performs exactly one HTTP call per request; retrying is left to the
    application layer.
    """

    async def create_embeddings(
        self,
        texts: list[str],
        *,
        model: str,
        dimensions: int,
    ) -> list[list[float]]:
        if not texts:
            return []

        data = await self._post_json(
            "embeddings",
            {"model": model, "input": texts, "dimensions": dimensions},
        )

        # Items may arrive out of input order
        try:
            items = sorted(data.get("data") or [], key=lambda item: item.get("index", 0))
            vectors = [list(item["embedding"]) for item in items]
        except (KeyError, TypeError, AttributeError) as e:
            raise TerminalProviderError(
                self.provider_name, 502, f"Malformed embeddings response: {e!r}"
            ) from e

        logger.debug(
            "Generated %d embeddings (model=%s, dims=%d)",
            len(vectors),
            model,
            len(vectors[0]) if vectors else 0,
        )
        return vectors
