"""Abstract repository interface (port) for stored chunks and vector search."""

from abc import ABC, abstractmethod

from policy_rag.domain.entities import SearchResult, StoredChunk


class ChunkRepository(ABC):
    """Port for policy chunk persistence and similarity search."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every stored chunk. Returns count of deleted rows."""
        ...

    @abstractmethod
    async def insert_chunks(self, chunks: list[StoredChunk]) -> None:
        """Persist a batch of chunks with their embeddings."""
        ...

    @abstractmethod
    async def match_chunks(
        self,
        query_embedding: list[float],
        *,
        match_count: int,
        category: str | None = None,
        max_priority: int = 2,
    ) -> list[SearchResult]:
        """Find the chunks most similar to the query embedding.

        Args:
            query_embedding: The query vector.
            match_count: Maximum number of results.
            category: Optional filter — only chunks of this category.
            max_priority: Only chunks whose priority is <= this value.

        Returns:
            Results ordered by descending similarity.

        Raises:
            IndexQueryError: If the index cannot be queried.
        """
        ...
