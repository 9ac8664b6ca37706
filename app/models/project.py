"""Project SQLModel definition.

A project is one chatbot agent: a named conversation with its own system
prompt, message history and file attachments.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class Project(SQLModel, table=True):
    """
    Project entity.

    Ownership: each project belongs to exactly one user via user_id.
    All lookups MUST filter by user_id.
    """
    __tablename__ = "project"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, nullable=False)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None)
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
