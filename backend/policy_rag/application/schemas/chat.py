"""Pydantic v2 schemas (DTOs) for chatbot sessions, messages and feedback."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ── Sessions ──


class CreateSessionRequest(BaseModel):
    """Schema for opening a new chat session."""

    context_entity_id: str | None = Field(
        default=None, description="Optional property the conversation is about"
    )


class ChatSessionResponse(BaseModel):
    id: str
    title: str | None
    context_entity_id: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Messages ──


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, examples=["보증금은 언제 돌려받을 수 있나요?"])


class SourceSummaryResponse(BaseModel):
    """Citation stored with an assistant message."""

    id: int
    source_file: str
    section_title: str
    similarity: float

    model_config = {"from_attributes": True}


class ChatMessageResponse(BaseModel):
    id: int
    session_id: str
    role: str  # "user" | "assistant"
    content: str
    sources: list[SourceSummaryResponse] | None = None
    feedback: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SendMessageResponse(BaseModel):
    """Outcome of one chat turn.

    ``success`` is False when answer generation failed; ``error`` then carries
    the provider message and ``message`` is absent.
    """

    success: bool
    message: ChatMessageResponse | None = None
    error: str | None = None


# ── Feedback ──


class FeedbackRequest(BaseModel):
    feedback: Literal["helpful", "not_helpful"]
