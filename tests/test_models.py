import pytest

from todo_app.models import DELETE, INSERT, UPDATE, ChangeEvent, TextTooLong, Todo, normalize_text


def test_normalize_text_trims():
    assert normalize_text("  hello  ") == "hello"


@pytest.mark.parametrize("raw", ["", "   ", "\n\t", None])
def test_normalize_text_blank_is_none(raw):
    assert normalize_text(raw) is None


def test_normalize_text_length_limit_applies_after_trim():
    assert normalize_text("  " + "x" * 128 + "  ") == "x" * 128
    with pytest.raises(TextTooLong) as exc:
        normalize_text("x" * 129)
    assert exc.value.max_length == 128
    assert exc.value.length == 129


def test_todo_from_row_defaults_completed():
    assert Todo.from_row({"id": "7", "text": "a"}) == Todo(id=7, text="a", completed=False)


def test_change_event_from_wrapped_payload():
    payload = {
        "data": {
            "schema": "public",
            "table": "todos",
            "type": "UPDATE",
            "record": {"id": 3, "text": "b", "completed": True},
            "old_record": {"id": 3},
        },
        "ids": [123],
    }
    event = ChangeEvent.from_payload(payload)
    assert event.type == UPDATE
    assert event.record == {"id": 3, "text": "b", "completed": True}
    assert event.todo_id == 3


def test_change_event_from_flat_payload():
    event = ChangeEvent.from_payload({"eventType": "delete", "new": {}, "old": {"id": 5}})
    assert event.type == DELETE
    assert event.record is None
    assert event.todo_id == 5


def test_change_event_without_id():
    event = ChangeEvent.from_payload({"data": {"type": INSERT}})
    assert event.type == INSERT
    assert event.todo_id is None
