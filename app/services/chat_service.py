"""Chat service layer for project chatbots.

Handles:
- Message storage (user + assistant)
- Context window selection
- Prompt assembly with the project's system prompt
- Model backend invocation
"""
from dataclasses import dataclass
from typing import Optional
import logging

from sqlmodel import Session

from app.config import settings
from app.core.errors import InvalidInput, ModelUnavailable, NotFound
from app.models.message import Message, MessageRole
from app.services import project_service
from app.services.context import (
    DEFAULT_CONTEXT_WINDOW,
    GenerationParams,
    assemble_prompt,
    select_context,
)
from app.services.message_store import MessageStore
from app.services.model_client import ChatModel

logger = logging.getLogger(__name__)


@dataclass
class ChatTurn:
    """The two messages persisted by one successful chat round-trip."""
    user_message: Message
    assistant_message: Message


class ChatService:
    """Service layer for chat operations."""

    def __init__(
        self,
        model: ChatModel,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        params: Optional[GenerationParams] = None,
        native_system_role: bool = False,
    ):
        """Initialize chat service."""
        if context_window < 1:
            raise ValueError(f"context_window must be positive, got {context_window}")
        self.model = model
        self.context_window = context_window
        self.params = params or GenerationParams.from_settings(settings)
        self.native_system_role = native_system_role

    def get_history(
        self,
        session: Session,
        project_id: int,
        user_id: int,
        limit: int = 50,
    ) -> list[Message]:
        """
        Get the most recent messages of a project for display.

        Args:
            session: Database session
            project_id: Project ID
            user_id: Authenticated user ID (ownership check)
            limit: Maximum number of messages

        Returns:
            Messages in chronological order

        Raises:
            NotFound: If project missing or not owned by user
        """
        project_service.get_owned_project(session, project_id, user_id)
        return MessageStore(session).recent(project_id, limit)

    def send_message(
        self,
        session: Session,
        project_id: int,
        user_id: int,
        message_text: str,
    ) -> ChatTurn:
        """
        Run one chat round-trip.

        Flow:
        1. Reject blank input
        2. Verify project ownership
        3. Store user message
        4. Re-read the context window (includes the new message)
        5. Assemble prompt with the project's system prompt
        6. Call the model backend
        7. Store assistant reply
        8. Return both messages

        Args:
            session: Database session
            project_id: Target project
            user_id: Authenticated user ID
            message_text: User message content, stored as-is

        Returns:
            ChatTurn with the persisted user and assistant messages

        Raises:
            InvalidInput: If message is empty or whitespace
            NotFound: If project missing or not owned by user
            StorageFailure: If a message cannot be written
            ModelUnavailable: If the backend fails; the user message stays
                stored and no assistant message is written
        """
        if not message_text or not message_text.strip():
            raise InvalidInput("Message is required")

        try:
            project = project_service.get_owned_project(session, project_id, user_id)
        except NotFound:
            logger.warning(f"Chat rejected: project {project_id} not found for user {user_id}")
            raise

        store = MessageStore(session)

        user_msg = store.append(project.id, MessageRole.USER, message_text)

        turns = select_context(
            store.recent(project.id, self.context_window),
            self.context_window,
        )

        prompt = assemble_prompt(
            project.system_prompt,
            turns,
            native_system_role=self.native_system_role,
        )

        try:
            reply = self.model.generate(prompt, self.params)
        except ModelUnavailable as e:
            logger.error(
                f"Model unavailable for user {user_id}, project={project.id}, "
                f"message_id={user_msg.id}: reason={e.reason}"
            )
            raise
        except Exception as e:
            logger.error(
                f"Model call crashed for user {user_id}, project={project.id}, "
                f"message_id={user_msg.id}: {str(e)}"
            )
            raise ModelUnavailable("api_error", str(e)) from e

        assistant_msg = store.append(project.id, MessageRole.ASSISTANT, reply)

        logger.info(
            f"Chat message processed: user={user_id}, project={project.id}, "
            f"message_id={user_msg.id}, response_id={assistant_msg.id}, "
            f"context_turns={len(turns)}"
        )

        return ChatTurn(user_message=user_msg, assistant_message=assistant_msg)

    def clear_history(self, session: Session, project_id: int, user_id: int) -> int:
        """
        Delete all messages of an owned project.

        Returns:
            Number of messages deleted

        Raises:
            NotFound: If project missing or not owned by user
            StorageFailure: If the delete fails
        """
        project_service.get_owned_project(session, project_id, user_id)
        deleted = MessageStore(session).clear(project_id)
        logger.info(f"Cleared {deleted} messages: user={user_id}, project={project_id}")
        return deleted

