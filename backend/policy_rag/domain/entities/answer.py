"""Domain entities produced by the answer flow."""

from dataclasses import dataclass, field

from policy_rag.domain.entities.chat_session import StoredMessage
from policy_rag.domain.entities.search_result import SearchResult


@dataclass
class EntityContext:
    """Summary of the property a session is about, injected into the prompt."""

    id: str
    title: str
    address: str
    status: str


@dataclass
class AnswerResult:
    """Synthesized answer plus every candidate source that was retrieved."""

    content: str
    sources: list[SearchResult] = field(default_factory=list)


@dataclass
class ChatTurnResult:
    """Outcome of one user turn as seen by the chat consumer.

    A failed turn carries ``error`` and no message, which keeps it apart from
    a successful answer that simply found no sources.
    """

    success: bool
    message: StoredMessage | None = None
    error: str | None = None
