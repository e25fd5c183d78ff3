from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from todo_app.backends.base import TodoBackend

logger = logging.getLogger(__name__)


class HandleState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class BackendHandle:
    """Lazily acquired backend client with an explicit readiness state.

    ``acquire()`` runs the factory once. There is no retry: a failed
    acquisition stays failed for the lifetime of the handle and every data
    operation keeps declining.
    """

    def __init__(self, factory: Callable[[], TodoBackend]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._backend: Optional[TodoBackend] = None
        self.state = HandleState.PENDING
        self.error: Optional[BaseException] = None

    @classmethod
    def ready(cls, backend: TodoBackend) -> "BackendHandle":
        handle = cls(lambda: backend)
        handle.acquire()
        return handle

    @property
    def is_ready(self) -> bool:
        return self.state is HandleState.READY

    @property
    def backend(self) -> Optional[TodoBackend]:
        return self._backend if self.is_ready else None

    def acquire(self) -> Optional[TodoBackend]:
        with self._lock:
            if self.state is not HandleState.PENDING:
                return self._backend
            try:
                self._backend = self._factory()
            except Exception as exc:  # noqa: BLE001
                self.state = HandleState.FAILED
                self.error = exc
                logger.error("backend client could not be acquired: %s", exc)
                return None
            self.state = HandleState.READY
            logger.info("backend client ready (%s)", getattr(self._backend, "name", "backend"))
            return self._backend

    def close(self) -> None:
        with self._lock:
            if self._backend is not None:
                self._backend.close()
