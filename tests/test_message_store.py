"""Tests for the append-only message store."""
import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import NotFound, StorageFailure
from app.models.message import Message, MessageRole
from app.models.project import Project
from app.models.project_file import ProjectFile
from app.models.user import User
from app.services.message_store import MessageStore


def test_append_returns_persisted_message(session, pirate_project):
    store = MessageStore(session)

    message = store.append(pirate_project.id, MessageRole.USER, "hello")

    assert message.id is not None
    assert message.project_id == pirate_project.id
    assert message.role == "user"
    assert message.content == "hello"


def test_append_to_missing_project_raises_not_found(session):
    store = MessageStore(session)

    with pytest.raises(NotFound):
        store.append(9999, MessageRole.USER, "hello")


def test_append_keeps_content_untouched(session, pirate_project):
    store = MessageStore(session)
    text = "  padded\n\ttext with ünïcode  "

    message = store.append(pirate_project.id, MessageRole.USER, text)

    assert store.recent(pirate_project.id, 1)[0].content == text
    assert message.content == text


def test_append_allows_empty_content(session, pirate_project):
    store = MessageStore(session)

    message = store.append(pirate_project.id, MessageRole.ASSISTANT, "")

    assert message.content == ""


def test_append_rejects_unknown_role(session, pirate_project):
    store = MessageStore(session)

    with pytest.raises(ValueError):
        store.append(pirate_project.id, "system", "nope")


def test_recent_returns_latest_oldest_first(session, pirate_project):
    store = MessageStore(session)
    for i in range(1, 8):
        store.append(pirate_project.id, MessageRole.USER, f"m{i}")

    recent = store.recent(pirate_project.id, 3)

    assert [m.content for m in recent] == ["m5", "m6", "m7"]


def test_recent_returns_everything_when_fewer_than_limit(session, pirate_project):
    store = MessageStore(session)
    store.append(pirate_project.id, MessageRole.USER, "a")
    store.append(pirate_project.id, MessageRole.ASSISTANT, "b")

    recent = store.recent(pirate_project.id, 50)

    assert [m.content for m in recent] == ["a", "b"]


@pytest.mark.parametrize("limit", [0, -1, 2.5, True])
def test_recent_rejects_non_positive_limit(session, pirate_project, limit):
    store = MessageStore(session)

    with pytest.raises(ValueError):
        store.recent(pirate_project.id, limit)


def test_recent_is_scoped_to_project(session, pirate_project, owner):
    from app.models.project import Project

    other = Project(user_id=owner.id, name="Other")
    session.add(other)
    session.commit()
    session.refresh(other)

    store = MessageStore(session)
    store.append(pirate_project.id, MessageRole.USER, "mine")
    store.append(other.id, MessageRole.USER, "theirs")

    assert [m.content for m in store.recent(pirate_project.id, 10)] == ["mine"]


def test_clear_returns_count_and_is_idempotent(session, pirate_project):
    store = MessageStore(session)
    for i in range(4):
        store.append(pirate_project.id, MessageRole.USER, f"m{i}")

    assert store.clear(pirate_project.id) == 4
    assert store.count(pirate_project.id) == 0
    assert store.clear(pirate_project.id) == 0


def test_count_is_scoped_to_project(session, pirate_project):
    store = MessageStore(session)
    store.append(pirate_project.id, MessageRole.USER, "one")
    store.append(pirate_project.id, MessageRole.ASSISTANT, "two")

    assert store.count(pirate_project.id) == 2
    assert store.count(pirate_project.id + 1) == 0


def test_count_failure_is_storage_failure(session, pirate_project, monkeypatch):
    def broken_exec(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "exec", broken_exec)

    with pytest.raises(StorageFailure):
        MessageStore(session).count(pirate_project.id)


@pytest.mark.parametrize(
    "row",
    [
        Message(project_id=1, role="user", content="x"),
        Project(user_id=1, name="p"),
        ProjectFile(project_id=1, filename="a", stored_name="a", path="a", mime_type="text/plain", size=1),
        User(email="a@example.com", password="h", name="A"),
    ],
)
def test_timestamps_are_timezone_aware(row):
    assert row.created_at.tzinfo is not None
