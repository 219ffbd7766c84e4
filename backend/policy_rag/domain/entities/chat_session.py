"""Domain entities for chatbot sessions and their persisted messages."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageFeedback(str, Enum):
    """Feedback tag a user may attach to an assistant message."""

    HELPFUL = "helpful"
    NOT_HELPFUL = "not_helpful"


@dataclass
class SourceSummary:
    """Compact citation stored with an assistant message."""

    id: int
    source_file: str
    section_title: str
    similarity: float


@dataclass
class StoredMessage:
    """One persisted conversation turn. Immutable except for ``feedback``."""

    session_id: str
    role: MessageRole
    content: str
    sources: list[SourceSummary] | None = None
    feedback: MessageFeedback | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ChatSession:
    """A conversation owned by exactly one principal.

    ``title`` is derived once, from the first user message, after the first
    exchange. ``context_entity_id`` optionally points at a property under
    discussion.
    """

    owner_id: str
    id: str | None = None
    title: str | None = None
    context_entity_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
