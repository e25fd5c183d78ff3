import pytest

from todo_app.backends import BackendError, create_backend
from todo_app.backends.sql_backend import SqlTodoBackend
from todo_app.config import TodoConfig
from todo_app.models import DELETE, INSERT, UPDATE, Todo


def test_insert_assigns_ids_and_lists_descending(sql_backend):
    a = sql_backend.insert_todo("first")
    b = sql_backend.insert_todo("second")

    assert a == Todo(id=1, text="first", completed=False)
    assert b.id == 2
    assert [t.id for t in sql_backend.list_todos()] == [2, 1]


def test_update_and_delete(sql_backend):
    todo = sql_backend.insert_todo("first")

    assert sql_backend.set_completed(todo.id, True) == Todo(id=todo.id, text="first", completed=True)
    assert sql_backend.update_text(todo.id, "renamed").text == "renamed"
    assert sql_backend.update_todo(999, {"text": "x"}) is None

    sql_backend.delete_todo(todo.id)
    sql_backend.delete_todo(todo.id)
    assert sql_backend.list_todos() == []


def test_rejects_unknown_columns(sql_backend):
    todo = sql_backend.insert_todo("first")
    with pytest.raises(BackendError):
        sql_backend.update_todo(todo.id, {"id": 5})


def test_rows_survive_a_new_engine(sqlite_url):
    first = SqlTodoBackend(sqlite_url)
    first.insert_todo("persisted")
    first.close()

    second = SqlTodoBackend(sqlite_url)
    try:
        assert [t.text for t in second.list_todos()] == ["persisted"]
    finally:
        second.close()


def test_subscribers_see_every_mutation(sql_backend):
    events = []
    sub = sql_backend.subscribe(events.append)

    todo = sql_backend.insert_todo("first")
    sql_backend.set_completed(todo.id, True)
    sql_backend.delete_todo(todo.id)
    sub.close()
    sql_backend.insert_todo("after close")

    assert [e.type for e in events] == [INSERT, UPDATE, DELETE]
    assert events[0].record == {"id": todo.id, "text": "first", "completed": False}
    assert events[1].old_record["completed"] is False
    assert events[2].todo_id == todo.id


def test_failing_listener_does_not_break_writes(sql_backend):
    def broken(event):
        raise RuntimeError("listener bug")

    sql_backend.subscribe(broken)

    assert sql_backend.insert_todo("still saved").id == 1


def test_create_backend_builds_sql_backend(sqlite_url, monkeypatch):
    monkeypatch.setenv("TODO_BACKEND", "sql")
    monkeypatch.setenv("TODO_DATABASE_URL", sqlite_url)
    backend = create_backend(TodoConfig.from_env())
    try:
        assert isinstance(backend, SqlTodoBackend)
    finally:
        backend.close()
