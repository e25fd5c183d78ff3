from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
EVENT_TYPES = (INSERT, UPDATE, DELETE)

DEFAULT_MAX_TEXT_LENGTH = 128


class TextTooLong(ValueError):
    def __init__(self, length: int, max_length: int) -> None:
        super().__init__(f"Task text must be at most {max_length} characters")
        self.length = length
        self.max_length = max_length


def normalize_text(raw: Optional[str], max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> Optional[str]:
    """Trim task text; None when nothing is left, TextTooLong past the limit."""
    value = (raw or "").strip()
    if not value:
        return None
    if len(value) > max_length:
        raise TextTooLong(len(value), max_length)
    return value


@dataclass(frozen=True)
class Todo:
    id: int
    text: str
    completed: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Todo":
        return cls(
            id=int(row["id"]),
            text=str(row.get("text") or ""),
            completed=bool(row.get("completed", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


@dataclass(frozen=True)
class ChangeEvent:
    """One insert/update/delete notification for the task table.

    ``record`` is the new row (insert/update), ``old_record`` the previous
    row (update/delete; for delete usually just the primary key).
    """

    type: str
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None

    @property
    def todo_id(self) -> Optional[int]:
        for row in (self.record, self.old_record):
            if row and row.get("id") is not None:
                try:
                    return int(row["id"])
                except (TypeError, ValueError):
                    return None
        return None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ChangeEvent":
        """Parse a realtime postgres_changes payload.

        Accepts both the wrapped Python client shape
        ``{"data": {"type", "record", "old_record"}}`` and the flat
        ``{"eventType", "new", "old"}`` shape.
        """
        data = payload.get("data") if isinstance(payload.get("data"), Mapping) else payload
        kind = data.get("type") or data.get("eventType") or data.get("event") or ""
        kind = str(kind).upper()
        record = data.get("record")
        if record is None:
            record = data.get("new")
        old = data.get("old_record")
        if old is None:
            old = data.get("old")
        return cls(
            type=kind,
            record=dict(record) if record else None,
            old_record=dict(old) if old else None,
        )
