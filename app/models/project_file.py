"""Uploaded file metadata SQLModel definition."""
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class ProjectFile(SQLModel, table=True):
    """File attached to a project. The bytes live on disk at `path`."""
    __tablename__ = "project_file"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True, nullable=False)
    filename: str = Field(max_length=255)
    stored_name: str = Field(max_length=255)
    path: str = Field()
    mime_type: str = Field(max_length=255)
    size: int = Field()
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
