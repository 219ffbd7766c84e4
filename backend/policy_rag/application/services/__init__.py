from .chat_service import ChatService
from .chunker import Chunker, ChunkOptions, DEFAULT_FILE_CATALOG
from .embedding_client import EmbeddingClient
from .ingestion_service import IngestionReport, IngestionService
from .rag_orchestrator import RagOrchestrator, classify_question, derive_session_title
from .retry_executor import RetryExecutor, RetryOptions, execute_with_retry, is_rate_limit_error
from .vector_search_service import VectorSearchService

__all__ = [
    "ChatService",
    "Chunker",
    "ChunkOptions",
    "DEFAULT_FILE_CATALOG",
    "EmbeddingClient",
    "IngestionReport",
    "IngestionService",
    "RagOrchestrator",
    "classify_question",
    "derive_session_title",
    "RetryExecutor",
    "RetryOptions",
    "execute_with_retry",
    "is_rate_limit_error",
    "VectorSearchService",
]
