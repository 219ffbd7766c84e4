"""Abstract interface (port) for embedding generation."""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Port for generating text embeddings — implemented in the infrastructure layer."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider (e.g. 'openrouter')."""
        ...

    @abstractmethod
    async def create_embeddings(
        self,
        texts: list[str],
        *,
        model: str,
        dimensions: int,
    ) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts in a single call.

        Args:
            texts: Already-normalized input strings.
            model: Embedding model identifier.
            dimensions: Requested vector length.

        Returns:
            One vector per input text, in input order.

        Raises:
            TransientProviderError: On rate limiting.
            TerminalProviderError: On any other provider failure.
        """
        ...
