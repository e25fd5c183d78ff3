from todo_app.handle import BackendHandle
from todo_app.sessions import SessionRegistry, track_session
from todo_app.store import TodoStore

from .fakes import FakeBackend


def started_store(backend: FakeBackend) -> TodoStore:
    store = TodoStore(BackendHandle.ready(backend))
    store.start()
    return store


def test_ended_session_store_is_closed():
    live, ended = FakeBackend(), FakeBackend()
    registry = SessionRegistry()
    registry.register("tab-1", started_store(live))
    registry.register("tab-2", started_store(ended))
    assert len(live.listeners) == len(ended.listeners) == 1

    closed = registry.sweep(lambda sid: sid == "tab-1")

    assert closed == 1
    assert len(registry) == 1
    assert ended.listeners == []
    assert ended.closed is True
    assert len(live.listeners) == 1
    assert live.closed is False


def test_sweep_never_closes_the_running_session():
    backend = FakeBackend()
    registry = SessionRegistry()
    registry.register("tab-1", started_store(backend))

    assert registry.sweep(lambda sid: False, keep="tab-1") == 0
    assert backend.closed is False


def test_failing_close_does_not_stop_the_sweep():
    class Broken:
        def close(self):
            raise RuntimeError("socket already gone")

    backend = FakeBackend()
    registry = SessionRegistry()
    registry.register("a", Broken())
    registry.register("b", started_store(backend))

    assert registry.sweep(lambda sid: False) == 2
    assert backend.closed is True
    assert len(registry) == 0


def test_outside_a_script_run_nothing_is_tracked():
    registry = SessionRegistry()

    track_session(registry, started_store(FakeBackend()))

    assert len(registry) == 0
