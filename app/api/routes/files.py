"""File attachment routes.

Provides:
- GET /api/files/{project_id} - List project files
- POST /api/files/{project_id} - Upload a file (multipart field "file")
- GET /api/files/{project_id}/{file_id}/download - Download a file
- DELETE /api/files/{project_id}/{file_id} - Delete a file
"""
from datetime import datetime
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from fastapi.responses import FileResponse
from pydantic import BaseModel
from sqlmodel import Session

from app.api.errors import to_http_exception
from app.core.deps import get_current_user, get_db
from app.core.errors import InvalidInput, NotFound
from app.models.project_file import ProjectFile
from app.models.user import User
from app.services import file_service

router = APIRouter(prefix="/api/files", tags=["files"])


class FileResponseModel(BaseModel):
    """Response model for file metadata."""
    id: int
    project_id: int
    filename: str
    stored_name: str
    mime_type: str
    size: int
    created_at: datetime


def file_response(project_file: ProjectFile) -> FileResponseModel:
    return FileResponseModel(
        id=project_file.id,
        project_id=project_file.project_id,
        filename=project_file.filename,
        stored_name=project_file.stored_name,
        mime_type=project_file.mime_type,
        size=project_file.size,
        created_at=project_file.created_at,
    )


@router.get("/{project_id}", response_model=list[FileResponseModel])
def list_files(
    project_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[FileResponseModel]:
    """
    List files of a project, newest first.

    Raises:
        HTTPException: 404 if project not found or not owned
    """
    try:
        files = file_service.list_files(session, project_id, current_user.id)
    except NotFound as e:
        raise to_http_exception(e)

    return [file_response(f) for f in files]


@router.post("/{project_id}", response_model=FileResponseModel, status_code=status.HTTP_201_CREATED)
def upload_file(
    project_id: int,
    file: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> FileResponseModel:
    """
    Upload a file to a project.

    Raises:
        HTTPException: 400 if no file or type not allowed
        HTTPException: 404 if project not found or not owned
        HTTPException: 413 if file too large
    """
    if file is None:
        raise to_http_exception(InvalidInput("No file uploaded"))

    try:
        project_file = file_service.save_upload(
            session,
            project_id,
            current_user.id,
            filename=file.filename,
            content_type=file.content_type,
            source=file.file,
        )
    except (InvalidInput, NotFound) as e:
        raise to_http_exception(e)

    return file_response(project_file)


@router.get("/{project_id}/{file_id}/download")
def download_file(
    project_id: int,
    file_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> FileResponse:
    """
    Download a file under its original name.

    Raises:
        HTTPException: 404 if project or file not found
    """
    try:
        project_file = file_service.get_file(session, project_id, file_id, current_user.id)
    except NotFound as e:
        raise to_http_exception(e)

    if not os.path.exists(project_file.path):
        raise to_http_exception(NotFound("File not found"))

    return FileResponse(
        project_file.path,
        media_type=project_file.mime_type,
        filename=project_file.filename,
    )


@router.delete("/{project_id}/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    project_id: int,
    file_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> Response:
    """
    Delete a file from disk and the database.

    Raises:
        HTTPException: 404 if project or file not found
    """
    try:
        file_service.delete_file(session, project_id, file_id, current_user.id)
    except NotFound as e:
        raise to_http_exception(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
