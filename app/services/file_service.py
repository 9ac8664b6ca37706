"""Project file attachments: disk storage plus metadata rows."""
from pathlib import Path
from typing import BinaryIO, Optional
import logging
import os
import random
import time

from sqlmodel import Session, select

from app.config import settings
from app.core.errors import FileTooLarge, InvalidInput, NotFound
from app.models.project_file import ProjectFile
from app.services.project_service import get_owned_project

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "text/csv",
    "application/json",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
})

CHUNK_SIZE = 64 * 1024


def make_stored_name(original_name: str) -> str:
    """Unique on-disk name: {millis}-{random}-{basename}{ext}."""
    base = os.path.basename(original_name) or "file"
    stem, ext = os.path.splitext(base)
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{suffix}-{stem}{ext}"


def list_files(session: Session, project_id: int, user_id: int) -> list[ProjectFile]:
    """Files of an owned project, newest first."""
    get_owned_project(session, project_id, user_id)
    statement = select(ProjectFile).where(
        ProjectFile.project_id == project_id
    ).order_by(ProjectFile.created_at.desc(), ProjectFile.id.desc())
    return list(session.exec(statement).all())


def recent_files(session: Session, project_id: int, limit: int = 10) -> list[ProjectFile]:
    statement = select(ProjectFile).where(
        ProjectFile.project_id == project_id
    ).order_by(ProjectFile.created_at.desc(), ProjectFile.id.desc()).limit(limit)
    return list(session.exec(statement).all())


def get_file(session: Session, project_id: int, file_id: int, user_id: int) -> ProjectFile:
    """
    Fetch one file of an owned project.

    Raises:
        NotFound: If the project or the file is missing
    """
    get_owned_project(session, project_id, user_id)
    statement = select(ProjectFile).where(
        ProjectFile.id == file_id,
        ProjectFile.project_id == project_id,
    )
    project_file = session.exec(statement).first()
    if not project_file:
        raise NotFound("File not found")
    return project_file


def _write_limited(source: BinaryIO, destination: Path, max_size: int) -> int:
    """Copy source to destination, refusing more than max_size bytes."""
    size = 0
    with open(destination, "wb") as out:
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > max_size:
                raise FileTooLarge(f"File exceeds maximum size of {max_size} bytes")
            out.write(chunk)
    return size


def save_upload(
    session: Session,
    project_id: int,
    user_id: int,
    filename: Optional[str],
    content_type: Optional[str],
    source: BinaryIO,
    upload_dir: Optional[str] = None,
    max_size: Optional[int] = None,
) -> ProjectFile:
    """
    Store an uploaded file for an owned project.

    Nothing is left on disk when the upload is rejected.

    Raises:
        InvalidInput: If no file was given or its type is not allowed
        FileTooLarge: If the file exceeds the size limit
        NotFound: If the project is missing or not owned
    """
    if not filename:
        raise InvalidInput("No file uploaded")
    if content_type not in ALLOWED_MIME_TYPES:
        raise InvalidInput(f"File type not allowed: {content_type}")

    get_owned_project(session, project_id, user_id)

    directory = Path(upload_dir or settings.UPLOAD_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    stored_name = make_stored_name(filename)
    destination = directory / stored_name

    try:
        size = _write_limited(source, destination, max_size or settings.MAX_FILE_SIZE)
        project_file = ProjectFile(
            project_id=project_id,
            filename=filename,
            stored_name=stored_name,
            path=str(destination),
            mime_type=content_type,
            size=size,
        )
        session.add(project_file)
        session.commit()
        session.refresh(project_file)
    except Exception:
        session.rollback()
        destination.unlink(missing_ok=True)
        raise

    logger.info(
        f"File uploaded: user={user_id}, project={project_id}, "
        f"file={project_file.id}, size={size}"
    )
    return project_file


def delete_file(session: Session, project_id: int, file_id: int, user_id: int) -> None:
    """
    Delete a file record and its bytes.

    A missing disk file only logs a warning; the record is still removed.
    """
    project_file = get_file(session, project_id, file_id, user_id)

    try:
        os.remove(project_file.path)
    except OSError as e:
        logger.warning(f"Could not delete file from disk: {str(e)}")

    session.delete(project_file)
    session.commit()
