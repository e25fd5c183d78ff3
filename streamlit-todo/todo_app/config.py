"""To-do app configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from todo_app.config_utils import (
    env_bool,
    env_choice,
    env_first,
    env_float,
    env_int,
    env_str,
)

BACKENDS = ("supabase", "sql")
SYNC_MODES = ("incremental", "reload")


def _repo_root() -> str:
    """Get the app directory (the folder holding app.py)."""
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _default_database_url() -> str:
    data_dir = os.path.join(_repo_root(), "data")
    os.makedirs(data_dir, exist_ok=True)
    return f"sqlite:///{os.path.join(data_dir, 'todos.db')}"


@dataclass(frozen=True)
class TodoConfig:
    """Runtime configuration for the to-do page.

    Backend selection:
    - TODO_BACKEND: supabase|sql (default: supabase)
    - SUPABASE_URL / SUPABASE_KEY: hosted service endpoint and API key.
      The REACT_APP_ prefixed names are accepted as fallbacks.
    - TODO_DATABASE_URL or DATABASE_URL: SQLAlchemy URL for the sql backend.
      If neither is set, defaults to local SQLite at data/todos.db

    Table:
    - TODO_TABLE (default: todos), TODO_SCHEMA (default: public)
    - TODO_CHANNEL: realtime channel name (default: table-db-changes)
    - TODO_MAX_TEXT_LENGTH (default: 128)

    Sync:
    - TODO_SYNC_MODE: incremental|reload (default: incremental)
    - TODO_REALTIME: subscribe to change events (default: true)
    - TODO_REFRESH_SECONDS: page poll interval for remote changes (default: 2)

    Logging:
    - TODO_LOG_LEVEL (default: INFO), TODO_LOG_FILE (optional)
    """

    backend: str
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    database_url: str

    table: str
    schema: str
    channel: str
    max_text_length: int

    sync_mode: str
    realtime: bool
    refresh_seconds: float

    log_level: str
    log_file: Optional[str]

    @classmethod
    def from_env(cls) -> "TodoConfig":
        backend = env_choice("TODO_BACKEND", BACKENDS, "supabase")

        database_url = env_first(["TODO_DATABASE_URL", "DATABASE_URL"])
        if not database_url:
            database_url = _default_database_url() if backend == "sql" else ""

        return cls(
            backend=backend,
            supabase_url=env_first(["SUPABASE_URL", "REACT_APP_SUPABASE_URL"]),
            supabase_key=env_first(["SUPABASE_KEY", "REACT_APP_SUPABASE_KEY"]),
            database_url=database_url,
            table=env_str("TODO_TABLE", "todos") or "todos",
            schema=env_str("TODO_SCHEMA", "public") or "public",
            channel=env_str("TODO_CHANNEL", "table-db-changes") or "table-db-changes",
            max_text_length=max(1, env_int("TODO_MAX_TEXT_LENGTH", 128)),
            sync_mode=env_choice("TODO_SYNC_MODE", SYNC_MODES, "incremental"),
            realtime=env_bool("TODO_REALTIME", True),
            refresh_seconds=max(0.5, env_float("TODO_REFRESH_SECONDS", 2.0)),
            log_level=env_str("TODO_LOG_LEVEL", "INFO").upper() or "INFO",
            log_file=env_first(["TODO_LOG_FILE"]),
        )


# Global config instance
_config: Optional[TodoConfig] = None


def get_config() -> TodoConfig:
    """Get the to-do configuration (cached)."""
    global _config
    if _config is None:
        _config = TodoConfig.from_env()
    return _config


def reset_config() -> None:
    global _config
    _config = None
