"""Shared fixtures: in-memory database, fake model backend, API client."""
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.config import settings
from app.core.deps import get_chat_service, get_db
from app.core.errors import ModelUnavailable
from app.main import app
from app.models import message, project, project_file, user  # noqa: F401
from app.models.project import Project
from app.models.user import User
from app.services.chat_service import ChatService
from app.services.context import AssembledPrompt, GenerationParams


class FakeChatModel:
    """Records every prompt; replies with a fixed text or raises."""

    def __init__(self, reply: str = "Ahoy!", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: list[tuple[AssembledPrompt, GenerationParams]] = []

    def generate(self, prompt: AssembledPrompt, params: GenerationParams) -> str:
        self.calls.append((prompt, params))
        if self.error is not None:
            raise self.error
        return self.reply

    @property
    def last_prompt(self) -> AssembledPrompt:
        return self.calls[-1][0]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def fake_model():
    return FakeChatModel()


@pytest.fixture
def failing_model():
    return FakeChatModel(error=ModelUnavailable("quota_exceeded", "quota exceeded"))


@pytest.fixture
def chat_service(fake_model):
    return ChatService(model=fake_model, context_window=20, params=GenerationParams())


@pytest.fixture
def owner(session):
    account = User(email="owner@example.com", password="x", name="Owner")
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@pytest.fixture
def stranger(session):
    account = User(email="stranger@example.com", password="x", name="Stranger")
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@pytest.fixture
def pirate_project(session, owner):
    item = Project(user_id=owner.id, name="Pirate", system_prompt="You are a pirate.")
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    directory = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(directory))
    return directory


@pytest.fixture
def client(engine, chat_service, upload_dir):
    def override_get_db():
        with Session(engine) as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client: TestClient, email: str = "alice@example.com", password: str = "secret1", name: str = "Alice"):
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def register_user(client):
    """Register an account through the API and return the response body."""
    return lambda **kwargs: register(client, **kwargs)


@pytest.fixture
def auth_headers(client):
    token = register(client)["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(client):
    token = register(client, email="bob@example.com", name="Bob")["token"]
    return {"Authorization": f"Bearer {token}"}
