"""Drag events as delivered by the pointer/drag source.

The raw ``over_id`` coming from the source can name a task, a column, or a
``placeholder:<column>`` gap.  It is decoded exactly once, here, into a
:data:`DropTarget`; nothing downstream parses strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..board.model import TaskStatus
from ..constants import PLACEHOLDER_PREFIX


# ---------------------------------------------------------------------------
# Drop targets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskTarget:
    task_id: str
    kind: str = "task"


@dataclass(frozen=True)
class ColumnTarget:
    status: TaskStatus
    kind: str = "column"


@dataclass(frozen=True)
class PlaceholderTarget:
    status: TaskStatus
    kind: str = "placeholder"


DropTarget = Union[TaskTarget, ColumnTarget, PlaceholderTarget]


def _column_status(raw: str) -> Optional[TaskStatus]:
    for status in TaskStatus:
        if raw in (status.value, status.label):
            return status
    return None


def parse_over_id(over_id: Optional[str]) -> Optional[DropTarget]:
    """Decode a raw droppable id.

    >>> parse_over_id("placeholder:Done")
    PlaceholderTarget(status=<TaskStatus.DONE: 'Done'>, kind='placeholder')
    """
    if over_id is None:
        return None
    raw = str(over_id)
    if not raw:
        return None
    if raw.startswith(PLACEHOLDER_PREFIX):
        status = _column_status(raw[len(PLACEHOLDER_PREFIX):])
        return PlaceholderTarget(status) if status is not None else None
    status = _column_status(raw)
    if status is not None:
        return ColumnTarget(status)
    return TaskTarget(raw)


def target_id(target: Optional[DropTarget]) -> Optional[str]:
    """Inverse of :func:`parse_over_id`, for logging and API responses."""
    if target is None:
        return None
    if isinstance(target, TaskTarget):
        return target.task_id
    if isinstance(target, PlaceholderTarget):
        return f"{PLACEHOLDER_PREFIX}{target.status.value}"
    return target.status.value


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    top: float
    height: float
    left: float = 0.0
    width: float = 0.0

    @property
    def midpoint_y(self) -> float:
        return self.top + self.height / 2


@dataclass(frozen=True)
class SortableHints:
    """Indices reported by a sortable list for the active and hovered items."""

    active_index: Optional[int] = None
    over_index: Optional[int] = None

    @property
    def complete(self) -> bool:
        return isinstance(self.active_index, int) and isinstance(self.over_index, int)


# ---------------------------------------------------------------------------
# Lifecycle events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DragStart:
    active_id: str


@dataclass(frozen=True)
class DragOver:
    active_id: str
    over: Optional[DropTarget] = None
    pointer: Optional[Point] = None
    over_rect: Optional[Rect] = None
    hints: Optional[SortableHints] = None

    @classmethod
    def from_raw(
        cls,
        active_id: str,
        over_id: Optional[str],
        pointer: Optional[Point] = None,
        over_rect: Optional[Rect] = None,
        hints: Optional[SortableHints] = None,
    ) -> "DragOver":
        return cls(active_id, parse_over_id(over_id), pointer, over_rect, hints)


@dataclass(frozen=True)
class DragEnd:
    active_id: str
    over: Optional[DropTarget] = None
    hints: Optional[SortableHints] = None

    @classmethod
    def from_raw(
        cls,
        active_id: str,
        over_id: Optional[str],
        hints: Optional[SortableHints] = None,
    ) -> "DragEnd":
        return cls(active_id, parse_over_id(over_id), hints)
