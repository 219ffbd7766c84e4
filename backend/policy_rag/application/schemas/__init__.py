from .chat import (
    ChatMessageResponse,
    ChatSessionResponse,
    CreateSessionRequest,
    FeedbackRequest,
    SendMessageRequest,
    SendMessageResponse,
    SourceSummaryResponse,
)
from .search import SearchRequest, SearchResponse, SearchResultResponse

__all__ = [
    "ChatMessageResponse",
    "ChatSessionResponse",
    "CreateSessionRequest",
    "FeedbackRequest",
    "SendMessageRequest",
    "SendMessageResponse",
    "SourceSummaryResponse",
    "SearchRequest",
    "SearchResponse",
    "SearchResultResponse",
]
