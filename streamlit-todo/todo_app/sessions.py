"""Teardown of per-session stores.

Streamlit has no hook for a browser session ending. Every script run
registers its store here and sweeps the stores of sessions the runtime no
longer knows about, closing their change subscription and backend client.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional

from streamlit import runtime
from streamlit.runtime.scriptrunner import get_script_run_ctx

from todo_app.store import TodoStore

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stores: Dict[str, TodoStore] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)

    def register(self, session_id: str, store: TodoStore) -> None:
        with self._lock:
            self._stores[session_id] = store

    def sweep(self, is_active: Callable[[str], bool], *, keep: Optional[str] = None) -> int:
        """Close and forget the stores of inactive sessions; returns how many."""
        with self._lock:
            gone = {
                sid: store
                for sid, store in self._stores.items()
                if sid != keep and not is_active(sid)
            }
            for sid in gone:
                del self._stores[sid]
        for sid, store in gone.items():
            try:
                store.close()
            except Exception:  # noqa: BLE001
                logger.exception("closing store of session %s failed", sid)
            else:
                logger.info("closed store of ended session %s", sid)
        return len(gone)


def current_session_id() -> Optional[str]:
    ctx = get_script_run_ctx()
    return ctx.session_id if ctx is not None else None


def session_is_active(session_id: str) -> bool:
    if not runtime.exists():
        # no server runtime (bare script or test harness): nothing to reap
        return True
    return runtime.get_instance().is_active_session(session_id)


def track_session(registry: SessionRegistry, store: TodoStore) -> None:
    """Register the running session's store and reap ended sessions."""
    session_id = current_session_id()
    if session_id is None:
        return
    registry.register(session_id, store)
    registry.sweep(session_is_active, keep=session_id)
