from .chat_provider import ChatProvider
from .chat_repository import ChatRepository
from .chunk_repository import ChunkRepository
from .embedding_provider import EmbeddingProvider
from .entity_context_repository import EntityContextRepository

__all__ = [
    "ChatProvider",
    "ChatRepository",
    "ChunkRepository",
    "EmbeddingProvider",
    "EntityContextRepository",
]
