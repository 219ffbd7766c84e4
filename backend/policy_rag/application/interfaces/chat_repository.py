"""Abstract repository interface for chat sessions and their messages."""

from abc import ABC, abstractmethod
from datetime import datetime

from policy_rag.domain.entities import ChatSession, MessageFeedback, StoredMessage


class ChatRepository(ABC):
    """Port — the relational message store used by the chatbot."""

    @abstractmethod
    async def create_session(self, session: ChatSession) -> ChatSession:
        """Persist a new session. Returns it with its assigned ID."""
        ...

    @abstractmethod
    async def get_session(self, session_id: str, *, owner_id: str) -> ChatSession | None:
        """Fetch a session only if it belongs to ``owner_id``."""
        ...

    @abstractmethod
    async def list_sessions(self, owner_id: str, *, limit: int = 50) -> list[ChatSession]:
        """List the owner's sessions, most recently updated first."""
        ...

    @abstractmethod
    async def delete_session(self, session_id: str, *, owner_id: str) -> bool:
        """Delete a session and its messages. Returns False when nothing matched."""
        ...

    @abstractmethod
    async def update_session(
        self,
        session_id: str,
        *,
        updated_at: datetime,
        title: str | None = None,
    ) -> None:
        """Advance ``updated_at`` and optionally set the title."""
        ...

    @abstractmethod
    async def add_message(self, message: StoredMessage) -> StoredMessage:
        """Append a message to its session."""
        ...

    @abstractmethod
    async def get_messages(self, session_id: str) -> list[StoredMessage]:
        """All messages of a session, oldest first."""
        ...

    @abstractmethod
    async def get_recent_messages(self, session_id: str, *, limit: int) -> list[StoredMessage]:
        """The last ``limit`` messages of a session, returned oldest first."""
        ...

    @abstractmethod
    async def count_messages(self, session_id: str) -> int:
        ...

    @abstractmethod
    async def get_message(self, message_id: int) -> StoredMessage | None:
        ...

    @abstractmethod
    async def set_feedback(self, message_id: int, feedback: MessageFeedback) -> None:
        ...
