"""FastAPI dependency injection — wires infrastructure to application layer.

The ``build_*`` helpers are shared with the ingestion CLI, which has no
request scope.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from policy_rag.config import Settings, get_settings
from policy_rag.application.services import (
    ChatService,
    Chunker,
    EmbeddingClient,
    IngestionService,
    RagOrchestrator,
    RetryExecutor,
    RetryOptions,
    VectorSearchService,
)
from policy_rag.infrastructure.database.session import get_db_session
from policy_rag.infrastructure.database.repositories import (
    PgChunkRepository,
    SQLAlchemyChatRepository,
    SQLAlchemyPropertyRepository,
)
from policy_rag.infrastructure.openrouter import OpenRouterClient, OpenRouterEmbeddingProvider


def build_retry_executor(settings: Settings) -> RetryExecutor:
    return RetryExecutor(
        RetryOptions(
            max_retries=settings.retry_max_retries,
            initial_delay=settings.retry_initial_delay,
            max_delay=settings.retry_max_delay,
            backoff_multiplier=settings.retry_backoff_multiplier,
        )
    )


def build_embedding_client(settings: Settings) -> EmbeddingClient:
    """EmbeddingClient over OpenRouter /embeddings with rate-limit retry."""
    provider = OpenRouterEmbeddingProvider(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
        timeout=settings.embedding_timeout,
    )
    return EmbeddingClient(
        provider,
        build_retry_executor(settings),
        model=settings.embedding_model,
        dimensions=settings.embedding_dimensions,
        batch_size=settings.embedding_batch_size,
    )


def build_ingestion_service(session: AsyncSession, settings: Settings) -> IngestionService:
    return IngestionService(
        chunker=Chunker(),
        embedding_client=build_embedding_client(settings),
        chunk_repository=PgChunkRepository(session),
    )


def _build_search_service(session: AsyncSession, settings: Settings) -> VectorSearchService:
    return VectorSearchService(build_embedding_client(settings), PgChunkRepository(session))


async def get_search_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[VectorSearchService, None]:
    """Provides a VectorSearchService backed by pgvector."""
    yield _build_search_service(session, get_settings())


async def get_chat_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[ChatService, None]:
    """Provides a ChatService with the full RAG pipeline wired up."""
    settings = get_settings()

    chat_repository = SQLAlchemyChatRepository(session)
    provider = OpenRouterClient(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
        timeout=settings.synthesis_timeout,
    )
    orchestrator = RagOrchestrator(
        search_service=_build_search_service(session, settings),
        chat_repository=chat_repository,
        chat_provider=provider,
        entity_context_repository=SQLAlchemyPropertyRepository(session),
        model=settings.synthesis_model,
        max_tokens=settings.synthesis_max_tokens,
        history_limit=settings.history_limit,
        top_k=settings.search_top_k,
        min_similarity=settings.search_min_similarity,
        max_priority=settings.search_max_priority,
    )
    yield ChatService(chat_repository, orchestrator)
