"""Per-column order keys.

``order`` is treated as an opaque comparable key.  Reads sort by it, drag
commits renumber every touched column to ``0..n-1``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ..board.model import Task, TaskStatus


def column(
    tasks: Iterable[Task],
    status: TaskStatus,
    exclude: Iterable[str] = (),
) -> list[Task]:
    """Tasks of *status* sorted by ``order`` (stable for equal keys)."""
    skip = set(exclude)
    return sorted(
        (t for t in tasks if t.status == status and t.id not in skip),
        key=lambda t: t.order,
    )


def renumbered(ordered: Sequence[Task], start: int = 0) -> dict[str, int]:
    """Map each task id to its dense position, starting at *start*."""
    return {t.id: start + i for i, t in enumerate(ordered)}


def clamp(index: int, upper: int) -> int:
    return max(0, min(int(index), upper))


def index_of(ordered: Sequence[Task], task_id: str) -> int:
    for i, t in enumerate(ordered):
        if t.id == task_id:
            return i
    return -1


def is_dense(ordered: Sequence[Task]) -> bool:
    return [t.order for t in ordered] == list(range(len(ordered)))


def key_between(before: Optional[float], after: Optional[float]) -> float:
    """Return a key strictly between *before* and *after*.

    Either side may be ``None`` for an open end; with both open the first key
    is ``0``.
    """
    if before is None and after is None:
        return 0
    if before is None:
        return after - 1
    if after is None:
        return before + 1
    if after <= before:
        raise ValueError(f"No key between {before} and {after}")
    return before + (after - before) / 2


@dataclass(frozen=True)
class BoardIndex:
    """Snapshot of the board taken when a drag starts.

    Hover projection runs on every pointer move, so the columns are sorted
    once here instead of on each event.
    """

    by_id: dict[str, Task] = field(default_factory=dict)
    columns: dict[TaskStatus, list[Task]] = field(default_factory=dict)

    @classmethod
    def build(cls, tasks: Iterable[Task]) -> "BoardIndex":
        items = list(tasks)
        return cls(
            by_id={t.id: t for t in items},
            columns={status: column(items, status) for status in TaskStatus},
        )

    def get(self, task_id: str) -> Optional[Task]:
        return self.by_id.get(task_id)

    def column(self, status: TaskStatus, exclude: Iterable[str] = ()) -> list[Task]:
        skip = set(exclude)
        tasks = self.columns.get(status, [])
        if not skip:
            return list(tasks)
        return [t for t in tasks if t.id not in skip]

    def position(self, task_id: str) -> int:
        """Index of a task inside its own column, ``-1`` if unknown."""
        task = self.by_id.get(task_id)
        if task is None:
            return -1
        return index_of(self.columns.get(task.status, []), task_id)
