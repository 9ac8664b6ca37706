"""Chat message SQLModel definition."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class MessageRole(str, Enum):
    """Author of a message. Closed set."""
    USER = "user"
    ASSISTANT = "assistant"


class Message(SQLModel, table=True):
    """
    One turn in a project's chat history.

    Messages are append-only: there is no update path. Order within a
    project is (created_at, id).
    """
    __tablename__ = "message"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, nullable=False)
    role: str = Field(max_length=20)  # "user" or "assistant"
    content: str = Field()
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
