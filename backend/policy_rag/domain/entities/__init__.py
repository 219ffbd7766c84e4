from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .chat_session import ChatSession, MessageFeedback, MessageRole, SourceSummary, StoredMessage
from .document_chunk import (
    ChunkCategory,
    ChunkContentType,
    ChunkTarget,
    DocumentChunk,
    FileCategory,
    StoredChunk,
)
from .search_result import SearchOptions, SearchResult
from .answer import AnswerResult, ChatTurnResult, EntityContext

__all__ = [
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "ChatSession",
    "MessageFeedback",
    "MessageRole",
    "SourceSummary",
    "StoredMessage",
    "ChunkCategory",
    "ChunkContentType",
    "ChunkTarget",
    "DocumentChunk",
    "FileCategory",
    "StoredChunk",
    "SearchOptions",
    "SearchResult",
    "AnswerResult",
    "ChatTurnResult",
    "EntityContext",
]
