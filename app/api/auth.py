"""Account routes.

Provides:
- POST /api/auth/register - Create account, returns token
- POST /api/auth/login - Exchange credentials for token
- GET /api/auth/me - Current user profile
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session

from app.api.errors import to_http_exception
from app.core.deps import get_current_user, get_db
from app.core.errors import InvalidInput
from app.core.security import create_access_token
from app.models.user import User
from app.services import project_service, user_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    """Request model for registration."""
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    """Request model for login."""
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """Public view of a user."""
    id: int
    email: str
    name: str
    created_at: datetime


class AuthResponse(BaseModel):
    """Response model for register and login."""
    user: UserResponse
    token: str


class MeResponse(UserResponse):
    """Current user with project count."""
    project_count: int


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, email=user.email, name=user.name, created_at=user.created_at)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, session: Session = Depends(get_db)) -> AuthResponse:
    """
    Create an account.

    Raises:
        HTTPException: 400 on missing fields, bad email, short password,
            or duplicate email
    """
    try:
        user = user_service.register_user(session, request.email, request.password, request.name)
    except InvalidInput as e:
        raise to_http_exception(e)

    return AuthResponse(
        user=_user_response(user),
        token=create_access_token(user.id, user.email),
    )


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, session: Session = Depends(get_db)) -> AuthResponse:
    """
    Exchange email and password for a token.

    Raises:
        HTTPException: 400 if a field is missing, 401 on bad credentials
    """
    if not request.email or not request.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide email and password",
        )

    user = user_service.authenticate(session, request.email, request.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    return AuthResponse(
        user=_user_response(user),
        token=create_access_token(user.id, user.email),
    )


@router.get("/me", response_model=MeResponse)
def me(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> MeResponse:
    """Current user profile."""
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        created_at=current_user.created_at,
        project_count=project_service.count_projects(session, current_user.id),
    )
