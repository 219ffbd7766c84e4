"""Vector search service — embeds a question and queries the similarity index."""

import logging

from policy_rag.application.interfaces.chunk_repository import ChunkRepository
from policy_rag.application.services.embedding_client import EmbeddingClient
from policy_rag.domain.entities import SearchOptions, SearchResult
from policy_rag.domain.exceptions import IndexQueryError, ValidationError

logger = logging.getLogger(__name__)


class VectorSearchService:
    """Application service for similarity search over policy chunks."""

    def __init__(self, embedding_client: EmbeddingClient, chunk_repository: ChunkRepository):
        self._embedding_client = embedding_client
        self._chunk_repo = chunk_repository

    async def search(
        self,
        query_text: str,
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Return chunks at or above ``min_similarity``, in index order.

        An index failure is logged and yields an empty list. Embedding
        failures propagate.

        Raises:
            ValidationError: If the options are out of range.
        """
        options = options or SearchOptions()
        _validate(options)

        query_embedding = await self._embedding_client.embed(query_text)

        try:
            results = await self._chunk_repo.match_chunks(
                query_embedding,
                match_count=options.top_k,
                category=options.category,
                max_priority=options.max_priority,
            )
        except IndexQueryError as e:
            logger.error("Vector search failed: %s", e)
            return []

        matched = [r for r in results if r.similarity >= options.min_similarity]
        logger.debug(
            "Vector search: %d/%d results above %.2f (category=%s)",
            len(matched),
            len(results),
            options.min_similarity,
            options.category,
        )
        return matched


def _validate(options: SearchOptions) -> None:
    if options.top_k < 1:
        raise ValidationError("top_k must be >= 1")
    if not 0.0 <= options.min_similarity <= 1.0:
        raise ValidationError("min_similarity must be between 0 and 1")
    if options.max_priority < 0:
        raise ValidationError("max_priority must be >= 0")
