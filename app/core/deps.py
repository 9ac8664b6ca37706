"""FastAPI dependencies shared by the routers."""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlmodel import Session

from app.config import settings
from app.core.security import decode_access_token
from app.database import get_session
from app.models.user import User
from app.services.chat_service import ChatService
from app.services.model_client import OpenAIChatModel

bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    """Provide a request-scoped database session."""
    yield from get_session()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user from the Bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired,
            or belongs to a user that no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access denied. No token provided.")

    try:
        payload = decode_access_token(credentials.credentials)
    except ExpiredSignatureError:
        raise _unauthorized("Token expired. Please login again.")
    except JWTError:
        raise _unauthorized("Invalid token.")

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise _unauthorized("Invalid token.")

    user = session.get(User, int(subject))
    if user is None:
        raise _unauthorized("User no longer exists.")

    return user


def get_chat_service() -> ChatService:
    """Build the chat service wired to the configured model backend."""
    return ChatService(
        model=OpenAIChatModel(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.OPENAI_TIMEOUT,
        ),
        context_window=settings.CHAT_CONTEXT_WINDOW,
        native_system_role=settings.CHAT_NATIVE_SYSTEM_ROLE,
    )
