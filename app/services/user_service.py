"""User registration and credential checks."""
import logging
import re
from typing import Optional

from sqlmodel import Session, select

from app.core.errors import InvalidInput
from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    statement = select(User).where(User.email == email.lower())
    return session.exec(statement).first()


def register_user(
    session: Session,
    email: Optional[str],
    password: Optional[str],
    name: Optional[str],
) -> User:
    """
    Create an account.

    Raises:
        InvalidInput: On missing fields, malformed email, short password,
            or an email that is already registered
    """
    if not email or not password or not name or not name.strip():
        raise InvalidInput("Please provide email, password, and name")
    if not EMAIL_PATTERN.match(email):
        raise InvalidInput("Please provide a valid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if get_user_by_email(session, email):
        raise InvalidInput("An account with this email already exists")

    user = User(
        email=email.lower(),
        password=hash_password(password),
        name=name.strip(),
    )
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"User registered: id={user.id}")
    return user


def authenticate(session: Session, email: Optional[str], password: Optional[str]) -> Optional[User]:
    """Return the user for valid credentials, None otherwise."""
    if not email or not password:
        return None
    user = get_user_by_email(session, email)
    if not user or not verify_password(password, user.password):
        return None
    return user
