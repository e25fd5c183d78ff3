from todo_app.backends import BackendConfigError
from todo_app.handle import BackendHandle, HandleState

from .fakes import FakeBackend


def test_handle_is_lazy_and_acquires_once():
    built = []

    def factory():
        built.append(1)
        return FakeBackend()

    handle = BackendHandle(factory)
    assert handle.state is HandleState.PENDING
    assert handle.backend is None
    assert built == []

    first = handle.acquire()
    second = handle.acquire()

    assert handle.is_ready
    assert first is second is handle.backend
    assert built == [1]


def test_failed_acquisition_is_permanent():
    attempts = []

    def factory():
        attempts.append(1)
        raise BackendConfigError("SUPABASE_URL and SUPABASE_KEY must both be set")

    handle = BackendHandle(factory)

    assert handle.acquire() is None
    assert handle.acquire() is None
    assert handle.state is HandleState.FAILED
    assert isinstance(handle.error, BackendConfigError)
    assert handle.backend is None
    assert attempts == [1]


def test_close_closes_backend():
    backend = FakeBackend()
    handle = BackendHandle.ready(backend)
    handle.close()
    assert backend.closed is True
