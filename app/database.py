"""Database engine and session helpers."""
from sqlmodel import Session, SQLModel, create_engine

from app.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite connections are shared across FastAPI's worker threads
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, echo=False, connect_args=connect_args)


def init_db():
    """Create all tables if they don't exist."""
    # Register table metadata before create_all
    from app.models import user, project, message, project_file  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Yield a new SQLModel session, closed after use."""
    with Session(engine) as session:
        yield session
