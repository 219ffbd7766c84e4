from .chat_repository import SQLAlchemyChatRepository
from .chunk_repository import PgChunkRepository
from .property_repository import SQLAlchemyPropertyRepository

__all__ = [
    "SQLAlchemyChatRepository",
    "PgChunkRepository",
    "SQLAlchemyPropertyRepository",
]
