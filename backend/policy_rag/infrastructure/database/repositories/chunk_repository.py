"""SQLAlchemy implementation of ChunkRepository — pgvector-powered vector search."""

import logging

from sqlalchemy import Select, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from policy_rag.application.interfaces.chunk_repository import ChunkRepository
from policy_rag.domain.entities import SearchResult, StoredChunk
from policy_rag.domain.exceptions import IndexQueryError
from policy_rag.infrastructure.database.models import PolicyChunkModel

logger = logging.getLogger(__name__)


class PgChunkRepository(ChunkRepository):
    """Concrete chunk repository backed by PostgreSQL + pgvector."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def delete_all(self) -> int:
        result = await self._session.execute(delete(PolicyChunkModel))
        count = result.rowcount or 0
        logger.info("Deleted %d policy chunks", count)
        return count

    async def insert_chunks(self, chunks: list[StoredChunk]) -> None:
        if not chunks:
            return

        rows = [
            {
                "content": chunk.content,
                "embedding": chunk.embedding,
                "source_file": chunk.source_file,
                "category": chunk.category.value,
                "target": chunk.target.value,
                "section_title": chunk.section_title,
                "priority": chunk.priority,
                "content_type": chunk.content_type.value,
                "token_count": chunk.token_count,
            }
            for chunk in chunks
        ]
        await self._session.execute(insert(PolicyChunkModel), rows)
        logger.debug("Inserted %d policy chunks", len(rows))

    @staticmethod
    def build_match_query(
        query_embedding: list[float],
        *,
        match_count: int,
        category: str | None = None,
        max_priority: int = 2,
    ) -> Select:
        """Cosine-similarity search: similarity = 1 - (embedding <=> query)."""
        similarity = (
            1 - PolicyChunkModel.embedding.cosine_distance(query_embedding)
        ).label("similarity")

        query = (
            select(
                PolicyChunkModel.id,
                PolicyChunkModel.content,
                PolicyChunkModel.source_file,
                PolicyChunkModel.category,
                PolicyChunkModel.section_title,
                PolicyChunkModel.priority,
                PolicyChunkModel.content_type,
                similarity,
            )
            .where(PolicyChunkModel.priority <= max_priority)
        )
        if category:
            query = query.where(PolicyChunkModel.category == category)

        return query.order_by(similarity.desc()).limit(match_count)

    async def match_chunks(
        self,
        query_embedding: list[float],
        *,
        match_count: int,
        category: str | None = None,
        max_priority: int = 2,
    ) -> list[SearchResult]:
        query = self.build_match_query(
            query_embedding,
            match_count=match_count,
            category=category,
            max_priority=max_priority,
        )

        # A savepoint keeps a failed search from aborting the caller's transaction
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(query)
                rows = result.all()
        except SQLAlchemyError as e:
            raise IndexQueryError(f"similarity query failed: {e}") from e

        return [
            SearchResult(
                id=row.id,
                content=row.content,
                source_file=row.source_file,
                category=row.category,
                section_title=row.section_title or "",
                priority=row.priority,
                content_type=row.content_type,
                similarity=float(row.similarity),
            )
            for row in rows
        ]
