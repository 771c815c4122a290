"""Task model for the CRM task board.

A task lives in exactly one status column.  Within a column, ``order`` is an
opaque sortable key; drag commits renumber it to dense integers.  ``history``
is an append-only audit trail.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

from ..constants import HISTORY_EVENT_TYPES, HISTORY_STATUS_CHANGE
from ..utils import _now_iso, _short_hex


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    """Board column.  Declaration order is the left-to-right column order."""

    TODO = "ToDo"
    IN_PROGRESS = "InProgress"
    DONE = "Done"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def column_index(self) -> int:
        return list(TaskStatus).index(self)

    @classmethod
    def parse(cls, raw: Any) -> "TaskStatus":
        """Accept enum values, labels, or enum names (``todo``, ``To Do``...)."""
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip()
        for status in cls:
            if text in (status.value, status.label) or text.upper() == status.name:
                return status
        raise ValueError(f"Unknown task status: {raw!r}")


_STATUS_LABELS = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}


def _generate_id() -> str:
    """Short human-friendly task ID: ``task-<8hex>``."""
    return f"task-{_short_hex()}"


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HistoryEvent:
    """One entry in a task's audit trail."""

    id: str
    type: str
    content: str
    author: str
    timestamp: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEvent":
        kind = str(data.get("type", "comment"))
        if kind not in HISTORY_EVENT_TYPES:
            kind = "comment"
        return cls(
            id=str(data.get("id", "")),
            type=kind,
            content=str(data.get("content", "")),
            author=str(data.get("author", "")),
            timestamp=str(data.get("timestamp") or _now_iso()),
        )

    @classmethod
    def status_change(
        cls,
        task_id: str,
        old: TaskStatus,
        new: TaskStatus,
        author: str,
        timestamp: Optional[str] = None,
    ) -> "HistoryEvent":
        return cls(
            id=f"h-{task_id}-status-{_short_hex()}",
            type=HISTORY_STATUS_CHANGE,
            content=f"Status changed: {old.value} → {new.value}",
            author=author,
            timestamp=timestamp or _now_iso(),
        )


# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A card on the board."""

    id: str = field(default_factory=_generate_id)
    title: str = ""
    status: TaskStatus = TaskStatus.TODO
    order: float = 0
    assignees: list[str] = field(default_factory=list)
    history: list[HistoryEvent] = field(default_factory=list)

    description: str = ""
    priority: Optional[str] = None
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)

    def author_or(self, fallback: str) -> str:
        """First assignee, used to attribute generated history events."""
        for name in self.assignees:
            if name:
                return name
        return fallback

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for YAML/JSON persistence."""
        data: dict[str, Any] = {}
        for k, v in asdict(self).items():
            if isinstance(v, Enum):
                data[k] = v.value
            else:
                data[k] = v
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize from a plain dict, coercing bad values gracefully."""
        d = dict(data)
        try:
            status = TaskStatus.parse(d.pop("status", TaskStatus.TODO))
        except ValueError:
            status = TaskStatus.TODO
        raw_order = d.pop("order", 0)
        try:
            order = float(raw_order)
        except (TypeError, ValueError):
            order = 0.0
        if order.is_integer():
            order = int(order)
        history = [
            HistoryEvent.from_dict(h) if isinstance(h, dict) else h
            for h in (d.pop("history", []) or [])
        ]
        return cls(
            id=str(d.pop("id", None) or _generate_id()),
            title=str(d.pop("title", "")),
            status=status,
            order=order,
            assignees=[str(a) for a in (d.pop("assignees", []) or [])],
            history=[h for h in history if isinstance(h, HistoryEvent)],
            description=str(d.pop("description", "") or ""),
            priority=d.pop("priority", None),
            created_at=str(d.pop("created_at", None) or _now_iso()),
            updated_at=str(d.pop("updated_at", None) or _now_iso()),
        )
