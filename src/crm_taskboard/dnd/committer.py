"""Drop commit.

Turns the final :class:`~.projector.Projection` into one functional update of
the full task list: ``status`` and dense ``order`` for every task in every
touched column, plus one ``status_change`` history event per task that
changed column.  Either the whole batch applies or nothing does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from ..board.model import HistoryEvent, Task, TaskStatus
from ..board.store import TaskStore
from ..constants import DEFAULT_SYSTEM_AUTHOR
from ..utils import _now_iso
from . import keyspace
from .events import DropTarget, TaskTarget
from .projector import Projection

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ReorderError(ValueError):
    """A drop that cannot be applied.  Always handled as a no-op."""

    reason = "rejected"


class MissingTaskError(ReorderError):
    reason = "missing_task"


class SelfDropError(ReorderError):
    reason = "self_drop"


class NoTargetError(ReorderError):
    reason = "no_target"


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommitResult:
    applied: bool
    reason: Optional[str] = None
    moved_ids: tuple[str, ...] = ()
    source_status: Optional[TaskStatus] = None
    target_status: Optional[TaskStatus] = None
    insert_index: Optional[int] = None
    history_events: int = 0

    @classmethod
    def skipped(cls, reason: str) -> "CommitResult":
        return cls(applied=False, reason=reason)

    @property
    def cross_column(self) -> bool:
        return self.applied and self.source_status != self.target_status

    def to_dict(self) -> dict[str, object]:
        return {
            "applied": self.applied,
            "reason": self.reason,
            "moved_ids": list(self.moved_ids),
            "source_status": self.source_status.value if self.source_status else None,
            "target_status": self.target_status.value if self.target_status else None,
            "insert_index": self.insert_index,
            "history_events": self.history_events,
        }


# ---------------------------------------------------------------------------
# Committer
# ---------------------------------------------------------------------------

class Committer:
    """Apply drops to a task list.

    Parameters
    ----------
    system_author:
        Author for history events of tasks without assignees.
    clock:
        Returns the ISO timestamp stamped on history events.
    """

    def __init__(
        self,
        system_author: str = DEFAULT_SYSTEM_AUTHOR,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        self.system_author = system_author
        self.clock = clock

    def commit(
        self,
        store: TaskStore,
        projection: Projection,
        active_id: str,
        over: Optional[DropTarget],
    ) -> CommitResult:
        """Validate against a snapshot, then apply through one store update."""
        try:
            _, preview = self.plan(store.get_tasks(), projection, active_id, over)
        except ReorderError as exc:
            logger.info("Drop of %s ignored (%s): %s", active_id, exc.reason, exc)
            return CommitResult.skipped(exc.reason)
        if not preview.applied:
            logger.info("Drop of %s left the board unchanged", active_id)
            return preview

        outcome: list[CommitResult] = []

        def _update(prev: list[Task]) -> list[Task]:
            try:
                tasks, result = self.plan(prev, projection, active_id, over)
            except ReorderError as exc:
                outcome.append(CommitResult.skipped(exc.reason))
                return prev
            outcome.append(result)
            return tasks

        store.apply_update(_update)
        result = outcome[-1] if outcome else preview
        if result.applied:
            logger.info(
                "Moved %s from %s to %s at %s (%d history events)",
                list(result.moved_ids),
                result.source_status.value if result.source_status else None,
                result.target_status.value if result.target_status else None,
                result.insert_index,
                result.history_events,
            )
        else:
            logger.info("Drop of %s dropped during apply (%s)", active_id, result.reason)
        return result

    def plan(
        self,
        tasks: Sequence[Task],
        projection: Projection,
        active_id: str,
        over: Optional[DropTarget],
    ) -> tuple[list[Task], CommitResult]:
        """Compute the new task list without touching *tasks*.

        Raises :class:`ReorderError` subclasses for drops that must not apply.
        """
        by_id = {t.id: t for t in tasks}
        active = by_id.get(active_id)
        if active is None:
            raise MissingTaskError(f"Task {active_id} no longer exists")
        if over is None:
            raise NoTargetError("No drop target")

        moving_ids = [i for i in projection.moving_ids if i in by_id]
        if active_id not in moving_ids:
            moving_ids = [active_id]

        if active.status == projection.target_status:
            if isinstance(over, TaskTarget) and over.task_id in moving_ids:
                raise SelfDropError(f"Dropped {active_id} inside its own moving block")
            updates, result = self._same_column(tasks, active, moving_ids, projection, over)
        else:
            updates, result = self._cross_column(tasks, active, moving_ids, projection)

        if not updates:
            return list(tasks), CommitResult.skipped("unchanged")
        return [updates.get(t.id, t) for t in tasks], result

    # -- same column ---------------------------------------------------------

    def _same_column(self, tasks, active, moving_ids, projection, over):
        status = active.status
        moving_set = set(moving_ids)
        col = keyspace.column(tasks, status)
        stationary = [t for t in col if t.id not in moving_set]
        moving = [t for t in col if t.id in moving_set]

        if isinstance(over, TaskTarget):
            over_pos = keyspace.index_of(stationary, over.task_id)
            if over_pos == -1:
                raise NoTargetError(f"Drop target {over.task_id} is not in column {status.value}")
            first_moving = next(i for i, t in enumerate(col) if t.id in moving_set)
            moving_down = first_moving < keyspace.index_of(col, over.task_id)
            insert = over_pos + 1 if moving_down else over_pos
        else:
            insert = projection.insert_index
        insert = keyspace.clamp(insert, len(stationary))

        sequence = stationary[:insert] + moving + stationary[insert:]
        if [t.id for t in sequence] == [t.id for t in col]:
            return {}, CommitResult.skipped("unchanged")
        updates = self._renumber(sequence, 0)
        result = CommitResult(
            applied=True,
            moved_ids=tuple(t.id for t in moving),
            source_status=status,
            target_status=status,
            insert_index=insert,
        )
        return updates, result

    # -- cross column --------------------------------------------------------

    def _cross_column(self, tasks, active, moving_ids, projection):
        target = projection.target_status
        by_id = {t.id: t for t in tasks}
        moving = [by_id[i] for i in moving_ids]
        updates: dict[str, Task] = {}

        sources = {t.status for t in moving if t.status != target}
        for status in sorted(sources, key=lambda s: s.column_index):
            updates.update(self._renumber(keyspace.column(tasks, status, exclude=moving_ids), 0))

        remaining = keyspace.column(tasks, target, exclude=moving_ids)
        insert = keyspace.clamp(projection.insert_index, len(remaining))
        updates.update(self._renumber(remaining[:insert], 0))

        now = self.clock()
        events = 0
        for offset, task in enumerate(moving):
            changes: dict[str, object] = {"order": insert + offset}
            if task.status != target:
                event = HistoryEvent.status_change(
                    task.id, task.status, target, task.author_or(self.system_author), now
                )
                changes["status"] = target
                changes["history"] = [*task.history, event]
                events += 1
            if any(getattr(task, k) != v for k, v in changes.items()):
                updates[task.id] = replace(task, updated_at=now, **changes)

        updates.update(self._renumber(remaining[insert:], insert + len(moving)))
        result = CommitResult(
            applied=True,
            moved_ids=tuple(t.id for t in moving),
            source_status=active.status,
            target_status=target,
            insert_index=insert,
            history_events=events,
        )
        return updates, result

    def _renumber(self, ordered: Sequence[Task], start: int) -> dict[str, Task]:
        """Replacement tasks for every entry whose dense position changed."""
        now = None
        out: dict[str, Task] = {}
        positions = keyspace.renumbered(ordered, start)
        for task in ordered:
            position = positions[task.id]
            if task.order != position:
                now = now or self.clock()
                out[task.id] = replace(task, order=position, updated_at=now)
        return out
