"""Client-side state of the to-do page.

The backend is the only source of truth; ``TodoStore`` keeps a replaceable
copy of the list (ordered by id descending) plus the UI flags around it:
loading, adding, the error banner and the single item being edited.

Change events arrive on the realtime thread, page actions on the Streamlit
script thread, so all state is guarded by one re-entrant lock.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from todo_app.backends.base import BackendError, Subscription
from todo_app.handle import BackendHandle
from todo_app.models import (
    DEFAULT_MAX_TEXT_LENGTH,
    DELETE,
    INSERT,
    UPDATE,
    ChangeEvent,
    TextTooLong,
    Todo,
    normalize_text,
)

logger = logging.getLogger(__name__)

LOAD_FAILED = "Error loading todos"
ADD_FAILED = "Failed to add todo"
UPDATE_FAILED = "Error updating todo"
DELETE_FAILED = "Failed to delete todo"


@dataclass(frozen=True)
class StoreSnapshot:
    todos: Tuple[Todo, ...]
    loading: bool
    adding: bool
    error: Optional[str]
    editing_id: Optional[int]
    edit_text: str
    version: int


class TodoStore:
    def __init__(
        self,
        handle: BackendHandle,
        *,
        sync_mode: str = "incremental",
        realtime: bool = True,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
    ) -> None:
        self._handle = handle
        self.sync_mode = sync_mode
        self.realtime = realtime
        self.max_text_length = max_text_length

        self._lock = threading.RLock()
        self._started = False
        self._subscription: Optional[Subscription] = None
        self._load_seq = 0
        # events received while a fetch is in flight, replayed on its result
        self._buffer: Optional[List[ChangeEvent]] = None
        # sequence of the newest change event seen, overall and per todo id
        self._event_seq = 0
        self._event_marks: Dict[int, int] = {}

        self.todos: List[Todo] = []
        self.loading = True
        self.adding = False
        self.error: Optional[str] = None
        self.editing_id: Optional[int] = None
        self.edit_text = ""
        self.version = 0

    # -------------------- lifecycle --------------------
    @property
    def ready(self) -> bool:
        return self._handle.is_ready

    def start(self) -> bool:
        """Acquire the backend, subscribe to changes and run the first fetch.

        Returns False while the backend is unavailable; the page then keeps
        showing its loading indicator.
        """
        backend = self._handle.acquire()
        if backend is None:
            return False
        with self._lock:
            if self._started:
                return True
            self._started = True
            self.error = None
        if self.realtime:
            try:
                self._subscription = backend.subscribe(self.handle_change)
            except BackendError as exc:
                logger.warning("change subscription failed: %s", exc)
        self.load(initial=True)
        return True

    def close(self) -> None:
        """Unsubscribe and release the backend client; safe to call twice."""
        with self._lock:
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.close()
        self._handle.close()

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                todos=tuple(self.todos),
                loading=self.loading,
                adding=self.adding,
                error=self.error,
                editing_id=self.editing_id,
                edit_text=self.edit_text,
                version=self.version,
            )

    # -------------------- synchronization --------------------
    def load(self, *, initial: bool = False) -> bool:
        """Fetch the full list and replace the cache.

        A response is applied only if no newer fetch was started meanwhile.
        """
        backend = self._handle.backend
        if backend is None:
            return False
        with self._lock:
            self._load_seq += 1
            seq = self._load_seq
            if self._buffer is None:
                self._buffer = []
            if initial:
                self.loading = True
                self._touch()
        try:
            todos = backend.list_todos()
        except BackendError as exc:
            logger.warning("loading todos failed: %s", exc)
            with self._lock:
                if seq == self._load_seq:
                    self.error = LOAD_FAILED
                    self.loading = False
                    self._flush_buffer()
                    self._touch()
            return False
        with self._lock:
            if seq != self._load_seq:
                logger.debug("discarding stale fetch #%d (latest #%d)", seq, self._load_seq)
                return False
            self.todos = sorted(todos, key=lambda t: t.id, reverse=True)
            self.loading = False
            self._flush_buffer()
            self._touch()
        logger.debug("loaded %d todos", len(todos))
        return True

    def handle_change(self, event: ChangeEvent) -> None:
        """Change listener registered with the backend."""
        with self._lock:
            self._event_seq += 1
            if event.todo_id is not None:
                self._event_marks[event.todo_id] = self._event_seq
        if self.sync_mode == "reload" or not _patchable(event):
            logger.debug("%s event: full reload", event.type)
            self.load()
            return
        with self._lock:
            if self._buffer is not None:
                self._buffer.append(event)
                return
            self._apply(event)
            self._touch()

    def _flush_buffer(self) -> None:
        pending, self._buffer = self._buffer or [], None
        for event in pending:
            self._apply(event)

    def _apply(self, event: ChangeEvent) -> None:
        if event.type == DELETE:
            self._remove(event.todo_id)
            return
        try:
            todo = Todo.from_row(event.record or {})
        except (KeyError, TypeError, ValueError):
            logger.warning("ignoring malformed %s record: %r", event.type, event.record)
            return
        self._upsert(todo)

    def _upsert(self, todo: Todo) -> None:
        others = [t for t in self.todos if t.id != todo.id]
        others.append(todo)
        self.todos = sorted(others, key=lambda t: t.id, reverse=True)

    def _remove(self, todo_id: Optional[int]) -> None:
        self.todos = [t for t in self.todos if t.id != todo_id]
        if self.editing_id == todo_id:
            self.editing_id = None
            self.edit_text = ""

    def _touch(self) -> None:
        self.version += 1

    def _event_mark(self) -> int:
        with self._lock:
            return self._event_seq

    def _apply_response(self, todo: Optional[Todo], mark: int) -> None:
        """Apply a row returned by a mutation call started at ``mark``.

        A change event for the same id that arrived after ``mark`` is at
        least as new as the response, so the response is dropped.
        """
        if todo is None:
            return
        with self._lock:
            if self._event_marks.get(todo.id, 0) > mark:
                logger.debug("todo %s changed during the call; keeping the event's row", todo.id)
                return
            self._upsert(todo)
            self._touch()

    # -------------------- mutations --------------------
    def _fail(self, message: str) -> None:
        with self._lock:
            self.error = message
            self._touch()

    def _clear_error(self) -> None:
        with self._lock:
            self.error = None
            self._touch()

    def _text_or_fail(self, raw: str) -> Tuple[bool, Optional[str]]:
        try:
            return True, normalize_text(raw, self.max_text_length)
        except TextTooLong as exc:
            self._fail(str(exc))
            return False, None

    def add(self, text: str) -> bool:
        backend = self._handle.backend
        if backend is None:
            return False
        ok, value = self._text_or_fail(text)
        if not ok or value is None:
            return False
        with self._lock:
            self.adding = True
            self.error = None
            self._touch()
            mark = self._event_seq
        try:
            todo = backend.insert_todo(value, completed=False)
        except BackendError as exc:
            logger.warning("insert failed: %s", exc)
            self._fail(ADD_FAILED)
            return False
        finally:
            with self._lock:
                self.adding = False
                self._touch()
        self._apply_response(todo, mark)
        logger.info("added todo %s", todo.id if todo else "?")
        return True

    def update_text(self, todo_id: int, text: str) -> bool:
        backend = self._handle.backend
        if backend is None:
            return False
        ok, value = self._text_or_fail(text)
        if not ok:
            return False
        if value is None:
            self.cancel_edit()
            return False
        self._clear_error()
        mark = self._event_mark()
        try:
            todo = backend.update_text(todo_id, value)
        except BackendError as exc:
            logger.warning("update of todo %s failed: %s", todo_id, exc)
            self._fail(UPDATE_FAILED)
            return False
        else:
            self._apply_response(todo, mark)
            return True
        finally:
            self.cancel_edit()

    def toggle(self, todo: Todo) -> bool:
        backend = self._handle.backend
        if backend is None:
            return False
        self._clear_error()
        mark = self._event_mark()
        try:
            updated = backend.set_completed(todo.id, not todo.completed)
        except BackendError as exc:
            logger.warning("toggle of todo %s failed: %s", todo.id, exc)
            self._fail(UPDATE_FAILED)
            return False
        self._apply_response(updated, mark)
        return True

    def delete(self, todo_id: int) -> bool:
        backend = self._handle.backend
        if backend is None:
            return False
        self._clear_error()
        try:
            backend.delete_todo(todo_id)
        except BackendError as exc:
            logger.warning("delete of todo %s failed: %s", todo_id, exc)
            self._fail(DELETE_FAILED)
            return False
        with self._lock:
            self._remove(todo_id)
            self._touch()
        logger.info("deleted todo %s", todo_id)
        return True

    # -------------------- editor --------------------
    def start_edit(self, todo: Todo) -> None:
        with self._lock:
            self.editing_id = todo.id
            self.edit_text = todo.text
            self._touch()

    def cancel_edit(self) -> None:
        with self._lock:
            self.editing_id = None
            self.edit_text = ""
            self._touch()


def _patchable(event: ChangeEvent) -> bool:
    if event.type == DELETE:
        return event.todo_id is not None
    if event.type in (INSERT, UPDATE):
        return bool(event.record) and event.record.get("id") is not None
    return False
