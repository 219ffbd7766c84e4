"""Chat service — session-scoped chatbot use cases on top of the RAG orchestrator."""

import logging
from datetime import datetime, timezone

from policy_rag.application.interfaces.chat_repository import ChatRepository
from policy_rag.application.services.rag_orchestrator import (
    RagOrchestrator,
    derive_session_title,
)
from policy_rag.domain.entities import (
    ChatSession,
    ChatTurnResult,
    MessageFeedback,
    MessageRole,
    SourceSummary,
    StoredMessage,
)
from policy_rag.domain.exceptions import EntityNotFoundError, ProviderError, ValidationError

logger = logging.getLogger(__name__)

# A session whose count is at or below this after a turn has just had its first exchange.
_FIRST_EXCHANGE_MESSAGES = 2


class ChatService:
    """Application service for chat sessions owned by a single principal.

    Every operation is scoped to ``owner_id``; sessions and messages of
    other principals behave as if they did not exist.
    """

    def __init__(self, chat_repository: ChatRepository, orchestrator: RagOrchestrator):
        self._repo = chat_repository
        self._orchestrator = orchestrator

    async def create_session(
        self, owner_id: str, context_entity_id: str | None = None
    ) -> ChatSession:
        session = await self._repo.create_session(
            ChatSession(owner_id=owner_id, context_entity_id=context_entity_id or None)
        )
        logger.info("Created chat session %s for %s", session.id, owner_id)
        return session

    async def list_sessions(self, owner_id: str, limit: int = 50) -> list[ChatSession]:
        return await self._repo.list_sessions(owner_id, limit=limit)

    async def delete_session(self, owner_id: str, session_id: str) -> None:
        if not await self._repo.delete_session(session_id, owner_id=owner_id):
            raise EntityNotFoundError("ChatSession", session_id)
        logger.info("Deleted chat session %s", session_id)

    async def get_messages(self, owner_id: str, session_id: str) -> list[StoredMessage]:
        await self._get_owned_session(owner_id, session_id)
        return await self._repo.get_messages(session_id)

    async def send_message(
        self, owner_id: str, session_id: str, content: str
    ) -> ChatTurnResult:
        """Run one question/answer turn in a session.

        The orchestrator sees only earlier turns as history; both messages of
        this turn are recorded afterwards. A provider failure is reported in
        the result rather than raised, and the user message is still stored.

        Raises:
            EntityNotFoundError: If the session is unknown or not owned.
            ValidationError: If the message is blank.
        """
        if not content or not content.strip():
            raise ValidationError("message must not be empty")

        session = await self._get_owned_session(owner_id, session_id)

        try:
            answer = await self._orchestrator.answer(
                session_id, content, entity_context_id=session.context_entity_id
            )
        except ProviderError as e:
            logger.error("Chat turn failed for session %s: %s", session_id, e)
            await self._repo.add_message(
                StoredMessage(session_id=session_id, role=MessageRole.USER, content=content)
            )
            await self._repo.update_session(session_id, updated_at=_now())
            return ChatTurnResult(success=False, error=e.message)

        await self._repo.add_message(
            StoredMessage(session_id=session_id, role=MessageRole.USER, content=content)
        )
        assistant = await self._repo.add_message(
            StoredMessage(
                session_id=session_id,
                role=MessageRole.ASSISTANT,
                content=answer.content,
                sources=[
                    SourceSummary(
                        id=s.id,
                        source_file=s.source_file,
                        section_title=s.section_title,
                        similarity=s.similarity,
                    )
                    for s in answer.sources
                ],
            )
        )

        count = await self._repo.count_messages(session_id)
        if count <= _FIRST_EXCHANGE_MESSAGES:
            await self._repo.update_session(
                session_id, updated_at=_now(), title=derive_session_title(content)
            )
        else:
            await self._repo.update_session(session_id, updated_at=_now())

        return ChatTurnResult(success=True, message=assistant)

    async def submit_feedback(
        self, owner_id: str, message_id: int, feedback: MessageFeedback
    ) -> None:
        message = await self._repo.get_message(message_id)
        if message is None:
            raise EntityNotFoundError("ChatMessage", message_id)
        # Foreign sessions are reported as a missing message.
        if await self._repo.get_session(message.session_id, owner_id=owner_id) is None:
            raise EntityNotFoundError("ChatMessage", message_id)
        if message.role != MessageRole.ASSISTANT:
            raise ValidationError("feedback can only be given on assistant messages")

        await self._repo.set_feedback(message_id, MessageFeedback(feedback))

    async def _get_owned_session(self, owner_id: str, session_id: str) -> ChatSession:
        session = await self._repo.get_session(session_id, owner_id=owner_id)
        if session is None:
            raise EntityNotFoundError("ChatSession", session_id)
        return session


def _now() -> datetime:
    return datetime.now(timezone.utc)
