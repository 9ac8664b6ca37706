"""Append-only chat message storage, one log per project."""
import logging

from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import NotFound, StorageFailure
from app.models.message import Message, MessageRole
from app.models.project import Project

logger = logging.getLogger(__name__)


class MessageStore:
    """
    Durable message log for projects.

    The session is supplied by the caller; the store never opens its own
    connection.
    """

    def __init__(self, session: Session):
        self.session = session

    def append(self, project_id: int, role: MessageRole, content: str) -> Message:
        """
        Append a message to a project's log.

        Args:
            project_id: Parent project ID
            role: Message author
            content: Message text, stored as-is

        Returns:
            Persisted Message instance

        Raises:
            NotFound: If the project does not exist
            StorageFailure: If the write fails
        """
        if self.session.get(Project, project_id) is None:
            raise NotFound()

        message = Message(
            project_id=project_id,
            role=MessageRole(role).value,
            content=content,
        )
        try:
            self.session.add(message)
            self.session.commit()
            self.session.refresh(message)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to store {role} message for project {project_id}: {str(e)}")
            raise StorageFailure(cause=e) from e
        return message

    def recent(self, project_id: int, limit: int) -> list[Message]:
        """
        Most recent `limit` messages, oldest first.

        Raises:
            ValueError: If limit is not a positive integer
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")

        statement = (
            select(Message)
            .where(Message.project_id == project_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        try:
            newest_first = list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to read messages for project {project_id}: {str(e)}")
            raise StorageFailure(cause=e) from e
        newest_first.reverse()
        return newest_first

    def count(self, project_id: int) -> int:
        """Number of stored messages for a project."""
        statement = select(func.count()).select_from(Message).where(
            Message.project_id == project_id
        )
        try:
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            logger.error(f"Failed to count messages for project {project_id}: {str(e)}")
            raise StorageFailure(cause=e) from e

    def clear(self, project_id: int) -> int:
        """
        Delete every message of a project.

        Returns:
            Number of messages removed (0 when already empty)
        """
        statement = delete(Message).where(Message.project_id == project_id)
        try:
            result = self.session.exec(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to clear messages for project {project_id}: {str(e)}")
            raise StorageFailure(cause=e) from e
        return result.rowcount or 0
