"""Project CRUD scoped to the owning user."""
from datetime import datetime, timezone
from typing import Optional
import logging
import os

from sqlalchemy import delete, func
from sqlmodel import Session, select

from app.core.errors import InvalidInput, NotFound
from app.models.message import Message
from app.models.project import DEFAULT_SYSTEM_PROMPT, Project
from app.models.project_file import ProjectFile

logger = logging.getLogger(__name__)

UNSET = object()


def get_owned_project(session: Session, project_id: int, user_id: int) -> Project:
    """
    Fetch a project only if the user owns it.

    Raises:
        NotFound: If missing or owned by someone else
    """
    statement = select(Project).where(
        Project.id == project_id,
        Project.user_id == user_id,
    )
    project = session.exec(statement).first()
    if not project:
        raise NotFound()
    return project


def list_projects(session: Session, user_id: int) -> list[Project]:
    """Projects owned by the user, newest first."""
    statement = select(Project).where(
        Project.user_id == user_id
    ).order_by(Project.created_at.desc(), Project.id.desc())
    return list(session.exec(statement).all())


def count_projects(session: Session, user_id: int) -> int:
    statement = select(func.count()).select_from(Project).where(Project.user_id == user_id)
    return session.exec(statement).one()


def count_files(session: Session, project_id: int) -> int:
    statement = select(func.count()).select_from(ProjectFile).where(ProjectFile.project_id == project_id)
    return session.exec(statement).one()


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def create_project(
    session: Session,
    user_id: int,
    name: Optional[str],
    description: Optional[str] = None,
    system_prompt: Optional[str] = None,
) -> Project:
    """
    Create a project for the user.

    Blank system prompts fall back to the generic assistant prompt.

    Raises:
        InvalidInput: If name is missing or blank
    """
    if not name or not name.strip():
        raise InvalidInput("Project name is required")

    project = Project(
        user_id=user_id,
        name=name.strip(),
        description=_clean_optional(description),
        system_prompt=_clean_optional(system_prompt) or DEFAULT_SYSTEM_PROMPT,
    )
    session.add(project)
    session.commit()
    session.refresh(project)

    logger.info(f"Project created: user={user_id}, project={project.id}")
    return project


def update_project(
    session: Session,
    project_id: int,
    user_id: int,
    name=UNSET,
    description=UNSET,
    system_prompt=UNSET,
) -> Project:
    """
    Update the given fields of an owned project; UNSET fields are left alone.

    Raises:
        NotFound: If missing or not owned
        InvalidInput: If name is set to a blank value
    """
    project = get_owned_project(session, project_id, user_id)

    if name is not UNSET:
        if not name or not name.strip():
            raise InvalidInput("Project name cannot be empty")
        project.name = name.strip()
    if description is not UNSET:
        project.description = _clean_optional(description)
    if system_prompt is not UNSET:
        project.system_prompt = (system_prompt or "").strip()

    project.updated_at = datetime.now(timezone.utc)
    session.add(project)
    session.commit()
    session.refresh(project)
    return project


def delete_project(session: Session, project_id: int, user_id: int) -> None:
    """
    Delete an owned project with its messages and files.

    Stored file bytes are removed from disk; failures there are only logged.

    Raises:
        NotFound: If missing or not owned
    """
    project = get_owned_project(session, project_id, user_id)

    files = session.exec(
        select(ProjectFile).where(ProjectFile.project_id == project.id)
    ).all()
    paths = [f.path for f in files]

    session.exec(delete(Message).where(Message.project_id == project.id))
    session.exec(delete(ProjectFile).where(ProjectFile.project_id == project.id))
    session.delete(project)
    session.commit()

    for path in paths:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not delete file from disk: {path}: {str(e)}")

    logger.info(f"Project deleted: user={user_id}, project={project_id}, files={len(paths)}")
