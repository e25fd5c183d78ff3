"""Backends for the task table.

- supabase: hosted Supabase project (PostgREST + Realtime)
- sql: any SQLAlchemy database, change events fanned out in-process
"""
from __future__ import annotations

from todo_app.backends.base import (
    BackendConfigError,
    BackendError,
    ChangeListener,
    Subscription,
    TodoBackend,
)
from todo_app.config import TodoConfig


def create_backend(config: TodoConfig) -> TodoBackend:
    """Build the backend named by ``config.backend``."""
    if config.backend == "sql":
        from todo_app.backends.sql_backend import SqlTodoBackend

        if not config.database_url:
            raise BackendConfigError("TODO_DATABASE_URL is not set")
        return SqlTodoBackend(config.database_url, table=config.table)

    if config.backend == "supabase":
        from todo_app.backends.supabase_backend import SupabaseTodoBackend

        return SupabaseTodoBackend(
            config.supabase_url,
            config.supabase_key,
            table=config.table,
            schema=config.schema,
            channel=config.channel,
        )

    raise BackendConfigError(f"Unknown backend: {config.backend}")


__all__ = [
    "BackendConfigError",
    "BackendError",
    "ChangeListener",
    "Subscription",
    "TodoBackend",
    "create_backend",
]
