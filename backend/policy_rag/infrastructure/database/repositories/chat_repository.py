"""Concrete chat session/message repository backed by SQLAlchemy."""

from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from policy_rag.application.interfaces import ChatRepository
from policy_rag.domain.entities import (
    ChatSession,
    MessageFeedback,
    MessageRole,
    SourceSummary,
    StoredMessage,
)
from policy_rag.infrastructure.database.models import ChatMessageModel, ChatSessionModel


class SQLAlchemyChatRepository(ChatRepository):
    """Implements the ChatRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # ── Mapping ──

    @staticmethod
    def _session_to_entity(model: ChatSessionModel) -> ChatSession:
        return ChatSession(
            id=model.id,
            owner_id=model.owner_id,
            title=model.title,
            context_entity_id=model.context_entity_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _message_to_entity(model: ChatMessageModel) -> StoredMessage:
        sources = None
        if model.sources is not None:
            sources = [
                SourceSummary(
                    id=s["id"],
                    source_file=s["source_file"],
                    section_title=s.get("section_title", ""),
                    similarity=s["similarity"],
                )
                for s in model.sources
            ]
        return StoredMessage(
            id=model.id,
            session_id=model.session_id,
            role=MessageRole(model.role),
            content=model.content,
            sources=sources,
            feedback=MessageFeedback(model.feedback) if model.feedback else None,
            created_at=model.created_at,
        )

    @staticmethod
    def _message_to_model(entity: StoredMessage) -> ChatMessageModel:
        sources = None
        if entity.sources is not None:
            sources = [
                {
                    "id": s.id,
                    "source_file": s.source_file,
                    "section_title": s.section_title,
                    "similarity": s.similarity,
                }
                for s in entity.sources
            ]
        return ChatMessageModel(
            session_id=entity.session_id,
            role=entity.role.value,
            content=entity.content,
            sources=sources,
            created_at=entity.created_at,
        )

    # ── Sessions ──

    async def create_session(self, session: ChatSession) -> ChatSession:
        model = ChatSessionModel(
            owner_id=session.owner_id,
            title=session.title,
            context_entity_id=session.context_entity_id,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._session_to_entity(model)

    async def get_session(self, session_id: str, *, owner_id: str) -> ChatSession | None:
        stmt = select(ChatSessionModel).where(
            ChatSessionModel.id == session_id,
            ChatSessionModel.owner_id == owner_id,
        )
        model = (await self._session.execute(stmt)).scalar_one_or_none()
        return self._session_to_entity(model) if model else None

    async def list_sessions(self, owner_id: str, *, limit: int = 50) -> list[ChatSession]:
        stmt = (
            select(ChatSessionModel)
            .where(ChatSessionModel.owner_id == owner_id)
            .order_by(ChatSessionModel.updated_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._session_to_entity(row) for row in result.scalars().all()]

    async def delete_session(self, session_id: str, *, owner_id: str) -> bool:
        if await self.get_session(session_id, owner_id=owner_id) is None:
            return False
        await self._session.execute(
            delete(ChatMessageModel).where(ChatMessageModel.session_id == session_id)
        )
        await self._session.execute(
            delete(ChatSessionModel).where(ChatSessionModel.id == session_id)
        )
        return True

    async def update_session(
        self,
        session_id: str,
        *,
        updated_at: datetime,
        title: str | None = None,
    ) -> None:
        values: dict = {"updated_at": updated_at}
        if title is not None:
            values["title"] = title
        await self._session.execute(
            update(ChatSessionModel).where(ChatSessionModel.id == session_id).values(**values)
        )

    # ── Messages ──

    async def add_message(self, message: StoredMessage) -> StoredMessage:
        model = self._message_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return self._message_to_entity(model)

    async def get_messages(self, session_id: str) -> list[StoredMessage]:
        stmt = (
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session_id)
            .order_by(ChatMessageModel.created_at.asc(), ChatMessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [self._message_to_entity(row) for row in result.scalars().all()]

    async def get_recent_messages(self, session_id: str, *, limit: int) -> list[StoredMessage]:
        stmt = (
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session_id)
            .order_by(ChatMessageModel.created_at.desc(), ChatMessageModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        recent = [self._message_to_entity(row) for row in result.scalars().all()]
        recent.reverse()
        return recent

    async def count_messages(self, session_id: str) -> int:
        stmt = select(func.count(ChatMessageModel.id)).where(
            ChatMessageModel.session_id == session_id
        )
        return (await self._session.execute(stmt)).scalar_one()

    async def get_message(self, message_id: int) -> StoredMessage | None:
        model = await self._session.get(ChatMessageModel, message_id)
        return self._message_to_entity(model) if model else None

    async def set_feedback(self, message_id: int, feedback: MessageFeedback) -> None:
        await self._session.execute(
            update(ChatMessageModel)
            .where(ChatMessageModel.id == message_id)
            .values(feedback=feedback.value)
        )
