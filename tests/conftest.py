# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from todo_app.backends.sql_backend import SqlTodoBackend
from todo_app.config import reset_config
from todo_app.handle import BackendHandle
from todo_app.models import Todo
from todo_app.store import TodoStore

from .fakes import FakeBackend

TODO_ENV_VARS = [
    "TODO_BACKEND",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "REACT_APP_SUPABASE_URL",
    "REACT_APP_SUPABASE_KEY",
    "TODO_DATABASE_URL",
    "DATABASE_URL",
    "TODO_TABLE",
    "TODO_SCHEMA",
    "TODO_CHANNEL",
    "TODO_MAX_TEXT_LENGTH",
    "TODO_SYNC_MODE",
    "TODO_REALTIME",
    "TODO_REFRESH_SECONDS",
    "TODO_LOG_LEVEL",
    "TODO_LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Tests never see the developer's real Supabase credentials."""
    for name in TODO_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend(
        [
            Todo(id=1, text="Buy milk"),
            Todo(id=2, text="Walk the dog", completed=True),
            Todo(id=3, text="Write report"),
        ]
    )


@pytest.fixture()
def make_store():
    """Build a started store around a backend; closes subscriptions afterwards."""
    stores = []

    def _make(backend, **kwargs) -> TodoStore:
        store = TodoStore(BackendHandle.ready(backend), **kwargs)
        store.start()
        stores.append(store)
        return store

    yield _make
    for store in stores:
        store.close()


@pytest.fixture()
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite:///{(tmp_path / 'todos.db').as_posix()}"


@pytest.fixture()
def sql_backend(sqlite_url: str):
    b = SqlTodoBackend(sqlite_url)
    yield b
    b.close()
