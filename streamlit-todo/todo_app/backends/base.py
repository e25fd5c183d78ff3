from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from todo_app.models import ChangeEvent, Todo

ChangeListener = Callable[[ChangeEvent], None]


class BackendError(RuntimeError):
    """A backend call failed; wraps the client library's exception."""


class BackendConfigError(BackendError):
    """The backend cannot be built from the given configuration."""


class Subscription:
    """Handle returned by ``TodoBackend.subscribe``; ``close()`` is idempotent."""

    def __init__(self, on_close: Optional[Callable[[], None]] = None) -> None:
        self._on_close = on_close
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()


class TodoBackend(ABC):
    """Table-level access to the task collection.

    Every method raises ``BackendError`` on failure. Mutations return the
    affected row when the backend reports it, ``None`` otherwise.
    """

    name = "backend"

    @abstractmethod
    def list_todos(self) -> List[Todo]:
        """All rows, ordered by id descending."""

    @abstractmethod
    def insert_todo(self, text: str, completed: bool = False) -> Optional[Todo]:
        ...

    @abstractmethod
    def update_todo(self, todo_id: int, fields: Dict[str, Any]) -> Optional[Todo]:
        ...

    @abstractmethod
    def delete_todo(self, todo_id: int) -> None:
        ...

    @abstractmethod
    def subscribe(self, listener: ChangeListener) -> Subscription:
        """Call ``listener`` for every insert/update/delete on the table."""

    def update_text(self, todo_id: int, text: str) -> Optional[Todo]:
        return self.update_todo(todo_id, {"text": text})

    def set_completed(self, todo_id: int, completed: bool) -> Optional[Todo]:
        return self.update_todo(todo_id, {"completed": bool(completed)})

    def close(self) -> None:
        pass
