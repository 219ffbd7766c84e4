"""Embedding client — normalizes text and embeds it in rate-limit-safe batches."""

import logging

from policy_rag.application.interfaces.embedding_provider import EmbeddingProvider
from policy_rag.application.services.retry_executor import RetryExecutor
from policy_rag.domain.exceptions import TerminalProviderError

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "openai/text-embedding-3-small"
_DEFAULT_DIMENSIONS = 1536
_MAX_BATCH_SIZE = 2048  # provider limit on inputs per /embeddings call


def normalize_text(text: str) -> str:
    """Collapse newlines to spaces and trim."""
    return text.replace("\n", " ").strip()


class EmbeddingClient:
    """Application service wrapping an EmbeddingProvider with retry and batching.

    Sub-batches are embedded one at a time; each call is retried on rate
    limiting. A sub-batch that still fails after the retries fails the whole
    batch.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        retry_executor: RetryExecutor,
        *,
        model: str = _DEFAULT_MODEL,
        dimensions: int = _DEFAULT_DIMENSIONS,
        batch_size: int = _MAX_BATCH_SIZE,
    ):
        self._provider = provider
        self._retry = retry_executor
        self._model = model
        self._dimensions = dimensions
        self._batch_size = max(1, min(batch_size, _MAX_BATCH_SIZE))

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self._embed_once([normalize_text(text)])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts; output order matches input order."""
        if not texts:
            return []

        normalized = [normalize_text(t) for t in texts]
        vectors: list[list[float]] = []
        for start in range(0, len(normalized), self._batch_size):
            batch = normalized[start : start + self._batch_size]
            vectors.extend(await self._embed_once(batch))

        logger.info(
            "Embedded %d texts in %d call(s) (model=%s)",
            len(texts),
            -(-len(texts) // self._batch_size),
            self._model,
        )
        return vectors

    async def _embed_once(self, batch: list[str]) -> list[list[float]]:
        vectors = await self._retry.execute(
            lambda: self._provider.create_embeddings(
                batch, model=self._model, dimensions=self._dimensions
            )
        )
        self._check_vectors(batch, vectors)
        return vectors

    def _check_vectors(self, batch: list[str], vectors: list[list[float]]) -> None:
        if len(vectors) != len(batch):
            raise TerminalProviderError(
                self._provider.provider_name,
                502,
                f"expected {len(batch)} embeddings, got {len(vectors)}",
            )
        for vector in vectors:
            if len(vector) != self._dimensions:
                raise TerminalProviderError(
                    self._provider.provider_name,
                    502,
                    f"expected {self._dimensions}-dimensional embeddings, got {len(vector)}",
                )
