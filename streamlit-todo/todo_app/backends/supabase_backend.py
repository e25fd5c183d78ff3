"""Task table on a hosted Supabase project.

Reads and writes go through the synchronous client (PostgREST). Change
notifications come from Supabase Realtime, which only exists on the async
client, so each subscription runs its own event loop on a daemon thread.

The table needs realtime enabled (``alter publication supabase_realtime
add table todos``) for change events to arrive.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Dict, List, Optional

from supabase import acreate_client, create_client

from todo_app.backends.base import (
    BackendConfigError,
    BackendError,
    ChangeListener,
    Subscription,
    TodoBackend,
)
from todo_app.models import EVENT_TYPES, ChangeEvent, Todo

logger = logging.getLogger(__name__)

AsyncClientFactory = Callable[[str, str], Awaitable[Any]]


class SupabaseTodoBackend(TodoBackend):
    name = "supabase"

    def __init__(
        self,
        url: Optional[str],
        key: Optional[str],
        *,
        table: str = "todos",
        schema: str = "public",
        channel: str = "table-db-changes",
        client: Any = None,
        async_client_factory: AsyncClientFactory = acreate_client,
    ) -> None:
        if not url or not key:
            raise BackendConfigError("SUPABASE_URL and SUPABASE_KEY must both be set")
        self.url = url
        self.key = key
        self.table = table
        self.schema = schema
        self.channel = channel
        self._async_client_factory = async_client_factory
        self.realtime_listeners: List["RealtimeListener"] = []
        if client is None:
            try:
                client = create_client(url, key)
            except Exception as exc:  # noqa: BLE001
                raise BackendConfigError(f"cannot create Supabase client: {exc}") from exc
        self.client = client

    def _query(self):
        return self.client.table(self.table)

    def _execute(self, op: str, builder) -> List[Dict[str, Any]]:
        try:
            resp = builder.execute()
        except Exception as exc:  # noqa: BLE001
            raise BackendError(f"{op} on {self.table} failed: {exc}") from exc
        return list(getattr(resp, "data", None) or [])

    @staticmethod
    def _first(rows: List[Dict[str, Any]]) -> Optional[Todo]:
        return Todo.from_row(rows[0]) if rows else None

    def list_todos(self) -> List[Todo]:
        rows = self._execute("select", self._query().select("*").order("id", desc=True))
        return [Todo.from_row(r) for r in rows]

    def insert_todo(self, text: str, completed: bool = False) -> Optional[Todo]:
        rows = self._execute("insert", self._query().insert({"text": text, "completed": bool(completed)}))
        return self._first(rows)

    def update_todo(self, todo_id: int, fields: Dict[str, Any]) -> Optional[Todo]:
        rows = self._execute("update", self._query().update(dict(fields)).eq("id", todo_id))
        return self._first(rows)

    def delete_todo(self, todo_id: int) -> None:
        self._execute("delete", self._query().delete().eq("id", todo_id))

    def subscribe(self, listener: ChangeListener) -> Subscription:
        rt = RealtimeListener(
            self.url,
            self.key,
            schema=self.schema,
            table=self.table,
            channel=self.channel,
            listener=listener,
            client_factory=self._async_client_factory,
        )
        rt.start()
        self.realtime_listeners.append(rt)

        def _stop() -> None:
            rt.stop()
            if rt in self.realtime_listeners:
                self.realtime_listeners.remove(rt)

        return Subscription(on_close=_stop)

    def close(self) -> None:
        for rt in list(self.realtime_listeners):
            rt.stop()
        self.realtime_listeners.clear()


class RealtimeListener(threading.Thread):
    """Daemon thread holding one realtime channel open until ``stop()``."""

    poll_seconds = 0.25

    def __init__(
        self,
        url: str,
        key: str,
        *,
        schema: str,
        table: str,
        channel: str,
        listener: ChangeListener,
        client_factory: AsyncClientFactory = acreate_client,
    ) -> None:
        super().__init__(name=f"realtime-{schema}.{table}", daemon=True)
        self._url = url
        self._key = key
        self._schema = schema
        self._table = table
        self._channel_name = channel
        self._listener = listener
        self._client_factory = client_factory
        self._stop_event = threading.Event()
        # one worker keeps events in order and off the websocket loop
        self._deliveries = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"realtime-deliver-{table}")
        self.subscribed = threading.Event()
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            asyncio.run(self._main())
        except Exception as exc:  # noqa: BLE001
            self.error = exc
            logger.exception("realtime listener for %s.%s stopped", self._schema, self._table)
        finally:
            self._deliveries.shutdown(wait=True)

    async def _main(self) -> None:
        client = await self._client_factory(self._url, self._key)
        await client.realtime.connect()
        channel = client.channel(self._channel_name)
        channel.on_postgres_changes(
            event="*",
            schema=self._schema,
            table=self._table,
            callback=self._on_change,
        )
        await channel.subscribe()
        self.subscribed.set()
        logger.info("subscribed to %s.%s on channel %s", self._schema, self._table, self._channel_name)
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(self.poll_seconds)
        finally:
            await client.remove_channel(channel)
            logger.info("unsubscribed from channel %s", self._channel_name)

    def _on_change(self, payload: Dict[str, Any]) -> None:
        event = ChangeEvent.from_payload(payload)
        if event.type not in EVENT_TYPES:
            logger.debug("ignoring realtime payload of type %r", event.type)
            return
        try:
            self._deliveries.submit(self._deliver, event)
        except RuntimeError:
            logger.debug("listener stopped; dropping %s event", event.type)

    def _deliver(self, event: ChangeEvent) -> None:
        try:
            self._listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("change listener failed for %s event", event.type)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)
