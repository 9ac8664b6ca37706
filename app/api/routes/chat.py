"""Chat endpoint routes for project chatbots.

Provides:
- GET /api/chat/{project_id}/messages - Recent messages, oldest first
- POST /api/chat/{project_id} - Send message, get assistant reply
- DELETE /api/chat/{project_id}/messages - Clear chat history
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from app.api.errors import to_http_exception
from app.config import settings
from app.core.deps import get_chat_service, get_current_user, get_db
from app.core.errors import ChatbotError
from app.models.message import Message
from app.models.user import User
from app.services.chat_service import ChatService

router = APIRouter(prefix="/api/chat", tags=["chat"])


class ChatRequest(BaseModel):
    """Request model for sending chat message."""
    message: Optional[str] = None


class MessageResponse(BaseModel):
    """Response model for a single message."""
    id: int
    project_id: int
    role: str
    content: str
    created_at: datetime


class ChatResponse(BaseModel):
    """Response model for one chat round-trip."""
    user_message: MessageResponse
    assistant_message: MessageResponse


class MessageList(BaseModel):
    """Response model for message history."""
    messages: list[MessageResponse]


class ClearResponse(BaseModel):
    """Response model for clearing history."""
    deleted: int
    message: str


def message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        project_id=message.project_id,
        role=message.role,
        content=message.content,
        created_at=message.created_at,
    )


@router.get("/{project_id}/messages", response_model=MessageList)
def get_messages(
    project_id: int,
    limit: int = Query(default=settings.CHAT_HISTORY_LIMIT, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> MessageList:
    """
    Get the most recent messages of a project, oldest first.

    Raises:
        HTTPException: 404 if project not found or not owned
    """
    try:
        messages = chat_service.get_history(session, project_id, current_user.id, limit)
    except ChatbotError as e:
        raise to_http_exception(e)

    return MessageList(messages=[message_response(m) for m in messages])


@router.post("/{project_id}", response_model=ChatResponse)
def send_chat_message(
    project_id: int,
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """
    Send message to the project's chatbot.

    Flow:
    1. Validate message
    2. Verify project ownership
    3. Store user message
    4. Call model with recent history and system prompt
    5. Store assistant reply
    6. Return both messages

    Raises:
        HTTPException: 400 if message is empty
        HTTPException: 404 if project not found or not owned
        HTTPException: 503 if the AI backend is unavailable
        HTTPException: 500 if storage fails
    """
    try:
        turn = chat_service.send_message(
            session,
            project_id,
            current_user.id,
            request.message,
        )
    except ChatbotError as e:
        raise to_http_exception(e)

    return ChatResponse(
        user_message=message_response(turn.user_message),
        assistant_message=message_response(turn.assistant_message),
    )


@router.delete("/{project_id}/messages", response_model=ClearResponse)
def clear_messages(
    project_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> ClearResponse:
    """
    Delete all messages of a project.

    Raises:
        HTTPException: 404 if project not found or not owned
    """
    try:
        deleted = chat_service.clear_history(session, project_id, current_user.id)
    except ChatbotError as e:
        raise to_http_exception(e)

    return ClearResponse(deleted=deleted, message=f"Cleared {deleted} messages")
