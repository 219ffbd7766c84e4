"""SQLAlchemy ORM models for chatbot sessions and messages."""

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from policy_rag.infrastructure.database.base import Base


def _generate_uuid() -> str:
    return str(uuid.uuid4())


class ChatSessionModel(Base):
    """A conversation owned by a single principal."""

    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True, default=_generate_uuid)
    owner_id = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    context_entity_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_chat_sessions_owner_updated", "owner_id", "updated_at"),
    )


class ChatMessageModel(Base):
    """One persisted turn of a chat session."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(
        String(36),
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(String(20), nullable=False)  # "user" | "assistant"
    content = Column(Text, nullable=False)
    # [{id, source_file, section_title, similarity}]
    sources = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    feedback = Column(String(20), nullable=True)  # "helpful" | "not_helpful"
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
