"""Chatbot endpoints — sessions, messages (RAG answers) and feedback.

The caller is identified by the ``X-Principal-Id`` header; authentication
happens upstream.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse

from policy_rag.application.schemas import (
    ChatMessageResponse,
    ChatSessionResponse,
    CreateSessionRequest,
    FeedbackRequest,
    SendMessageRequest,
    SendMessageResponse,
)
from policy_rag.application.services import ChatService
from policy_rag.domain.entities import MessageFeedback
from policy_rag.domain.exceptions import EntityNotFoundError, ValidationError
from policy_rag.infrastructure.dependencies import get_chat_service

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_principal_id(x_principal_id: str = Header(..., min_length=1)) -> str:
    return x_principal_id


@router.post("/sessions", response_model=ChatSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    data: CreateSessionRequest,
    principal_id: str = Depends(get_principal_id),
    service: ChatService = Depends(get_chat_service),
) -> ChatSessionResponse:
    """Open a new chat session, optionally about a property."""
    session = await service.create_session(principal_id, data.context_entity_id)
    return ChatSessionResponse.model_validate(session, from_attributes=True)


@router.get("/sessions", response_model=list[ChatSessionResponse])
async def list_sessions(
    limit: int = 50,
    principal_id: str = Depends(get_principal_id),
    service: ChatService = Depends(get_chat_service),
) -> list[ChatSessionResponse]:
    """List the caller's sessions, most recently updated first."""
    sessions = await service.list_sessions(principal_id, limit=limit)
    return [ChatSessionResponse.model_validate(s, from_attributes=True) for s in sessions]


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    principal_id: str = Depends(get_principal_id),
    service: ChatService = Depends(get_chat_service),
) -> None:
    try:
        await service.delete_session(principal_id, session_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/sessions/{session_id}/messages", response_model=list[ChatMessageResponse])
async def get_messages(
    session_id: str,
    principal_id: str = Depends(get_principal_id),
    service: ChatService = Depends(get_chat_service),
) -> list[ChatMessageResponse]:
    """All messages of a session, oldest first."""
    try:
        messages = await service.get_messages(principal_id, session_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return [ChatMessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(
    session_id: str,
    data: SendMessageRequest,
    principal_id: str = Depends(get_principal_id),
    service: ChatService = Depends(get_chat_service),
):
    """Ask a question in a session and receive a cited answer.

    A failed answer is returned as ``{"success": false, "error": ...}`` with
    status 502; the question itself is still recorded.
    """
    try:
        result = await service.send_message(principal_id, session_id, data.content)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    if not result.success:
        body = SendMessageResponse(success=False, error=result.error)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=body.model_dump())

    return SendMessageResponse(
        success=True,
        message=ChatMessageResponse.model_validate(result.message, from_attributes=True),
    )


@router.post("/messages/{message_id}/feedback", status_code=status.HTTP_204_NO_CONTENT)
async def submit_feedback(
    message_id: int,
    data: FeedbackRequest,
    principal_id: str = Depends(get_principal_id),
    service: ChatService = Depends(get_chat_service),
) -> None:
    """Mark an assistant answer as helpful or not helpful."""
    try:
        await service.submit_feedback(principal_id, message_id, MessageFeedback(data.feedback))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
