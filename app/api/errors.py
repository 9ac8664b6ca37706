"""Translate service-layer errors into HTTP responses."""
from fastapi import HTTPException, status

from app.core.errors import (
    ChatbotError,
    FileTooLarge,
    InvalidInput,
    ModelUnavailable,
    NotFound,
    StorageFailure,
)

STATUS_BY_ERROR = [
    (FileTooLarge, status.HTTP_413_CONTENT_TOO_LARGE),
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ModelUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StorageFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def to_http_exception(error: ChatbotError) -> HTTPException:
    """
    Map a domain error to an HTTPException.

    Storage failures get a generic message; internal details stay in logs.
    """
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            detail = error.message
            if isinstance(error, StorageFailure):
                detail = "Internal server error"
            return HTTPException(status_code=status_code, detail=detail)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
