"""Project (chatbot agent) routes.

Provides:
- GET /api/projects - List user's projects with counts
- GET /api/projects/{id} - Project with counts and recent files
- POST /api/projects - Create project
- PUT /api/projects/{id} - Update name, description, system prompt
- DELETE /api/projects/{id} - Delete project, its messages and files
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlmodel import Session

from app.api.errors import to_http_exception
from app.api.routes.files import FileResponseModel, file_response
from app.core.deps import get_current_user, get_db
from app.core.errors import InvalidInput, NotFound
from app.models.project import Project
from app.models.user import User
from app.services import file_service, project_service
from app.services.message_store import MessageStore

router = APIRouter(prefix="/api/projects", tags=["projects"])


class ProjectCreate(BaseModel):
    """Request model for creating a project."""
    name: Optional[str] = None
    description: Optional[str] = None
    system_prompt: Optional[str] = None


class ProjectUpdate(BaseModel):
    """Request model for updating a project. Omitted fields are unchanged."""
    name: Optional[str] = None
    description: Optional[str] = None
    system_prompt: Optional[str] = None


class ProjectResponse(BaseModel):
    """Response model for a project."""
    id: int
    name: str
    description: Optional[str]
    system_prompt: str
    created_at: datetime
    updated_at: datetime


class ProjectSummary(ProjectResponse):
    """Project with dashboard counts."""
    message_count: int
    file_count: int


class ProjectDetail(ProjectSummary):
    """Project with counts and its most recent files."""
    files: list[FileResponseModel]


def _project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        system_prompt=project.system_prompt,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def _project_summary(session: Session, project: Project) -> ProjectSummary:
    return ProjectSummary(
        **_project_response(project).model_dump(),
        message_count=MessageStore(session).count(project.id),
        file_count=project_service.count_files(session, project.id),
    )


@router.get("", response_model=list[ProjectSummary])
def list_projects(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[ProjectSummary]:
    """List the user's projects, newest first."""
    projects = project_service.list_projects(session, current_user.id)
    return [_project_summary(session, project) for project in projects]


@router.get("/{project_id}", response_model=ProjectDetail)
def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ProjectDetail:
    """
    Get one project.

    Raises:
        HTTPException: 404 if project not found or not owned
    """
    try:
        project = project_service.get_owned_project(session, project_id, current_user.id)
    except NotFound as e:
        raise to_http_exception(e)

    files = file_service.recent_files(session, project.id, limit=10)
    return ProjectDetail(
        **_project_summary(session, project).model_dump(),
        files=[file_response(f) for f in files],
    )


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    request: ProjectCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ProjectResponse:
    """
    Create a project.

    Raises:
        HTTPException: 400 if name is missing
    """
    try:
        project = project_service.create_project(
            session,
            current_user.id,
            name=request.name,
            description=request.description,
            system_prompt=request.system_prompt,
        )
    except InvalidInput as e:
        raise to_http_exception(e)

    return _project_response(project)


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    request: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ProjectResponse:
    """
    Update the fields present in the request body.

    Raises:
        HTTPException: 404 if project not found or not owned
        HTTPException: 400 if name is blank
    """
    changes = {
        field: getattr(request, field)
        for field in ("name", "description", "system_prompt")
        if field in request.model_fields_set
    }

    try:
        project = project_service.update_project(session, project_id, current_user.id, **changes)
    except (NotFound, InvalidInput) as e:
        raise to_http_exception(e)

    return _project_response(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> Response:
    """
    Delete a project with its messages and files.

    Raises:
        HTTPException: 404 if project not found or not owned
    """
    try:
        project_service.delete_project(session, project_id, current_user.id)
    except NotFound as e:
        raise to_http_exception(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
