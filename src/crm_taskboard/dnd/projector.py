"""Hover projection.

While a drag is in flight, every pointer move is turned into a
:class:`Projection`: which ids move, into which column, at which index.
Nothing here mutates tasks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..board.model import TaskStatus
from . import keyspace
from .events import ColumnTarget, DragOver, PlaceholderTarget, TaskTarget
from .keyspace import BoardIndex
from .selection import SelectionSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placeholder:
    """Where the rendering layer should draw a drop gap."""

    target_status: TaskStatus
    insert_index: int
    count: int

    def to_dict(self) -> dict[str, object]:
        return {
            "target_status": self.target_status.value,
            "insert_index": self.insert_index,
            "count": self.count,
        }


@dataclass(frozen=True)
class Projection:
    moving_ids: tuple[str, ...]
    target_status: TaskStatus
    insert_index: int

    def placeholder(self) -> Placeholder:
        return Placeholder(self.target_status, self.insert_index, len(self.moving_ids))

    def to_dict(self) -> dict[str, object]:
        return {
            "moving_ids": list(self.moving_ids),
            "target_status": self.target_status.value,
            "insert_index": self.insert_index,
        }


def resolve_moving_ids(board: BoardIndex, dragged_id: str, selection: SelectionSet) -> tuple[str, ...]:
    """The dragged card alone, or the whole selection when it is a member."""
    if selection.is_selected(dragged_id):
        ordered = selection.ids_ordered_by(list(board.by_id.values()))
        if dragged_id in ordered:
            return tuple(ordered)
    return (dragged_id,)


class Projector:
    """Compute projections from hover events against a :class:`BoardIndex`."""

    def project(
        self,
        board: BoardIndex,
        event: DragOver,
        selection: SelectionSet,
        previous: Optional[Projection] = None,
        moving_ids: Optional[tuple[str, ...]] = None,
    ) -> Optional[Projection]:
        """Return the projection for *event*, or ``None`` when nothing is droppable.

        *previous* is the last projection of this drag; hovering the gap of
        the column it already targets keeps its index, so the placeholder
        does not oscillate under the pointer.
        """
        dragged = board.get(event.active_id)
        if dragged is None or event.over is None:
            return None

        moving = moving_ids or resolve_moving_ids(board, dragged.id, selection)
        over = event.over

        over_task = board.get(over.task_id) if isinstance(over, TaskTarget) else None
        if isinstance(over, (PlaceholderTarget, ColumnTarget)):
            target = over.status
        elif over_task is not None:
            target = over_task.status
        else:
            target = dragged.status

        if target == dragged.status:
            insert_index = self._same_column_index(board, event, target, over_task)
        else:
            insert_index = self._cross_column_index(board, event, target, over_task, moving, previous)

        projection = Projection(moving, target, insert_index)
        logger.debug("Projected %s", projection)
        return projection

    @staticmethod
    def _same_column_index(board, event, target, over_task) -> int:
        col = board.column(target)
        hints = event.hints
        if hints is not None and hints.complete:
            return keyspace.clamp(hints.over_index, len(col))
        if over_task is not None:
            idx = keyspace.index_of(col, over_task.id)
            if idx != -1:
                return idx
        return len(col)

    @staticmethod
    def _cross_column_index(board, event, target, over_task, moving, previous) -> int:
        col = board.column(target, exclude=moving)
        reuse = (
            previous is not None
            and previous.target_status == target
            and previous.moving_ids == moving
        )

        if isinstance(event.over, (PlaceholderTarget, ColumnTarget)):
            index = previous.insert_index if reuse else len(col)
        elif over_task is not None:
            index = keyspace.index_of(col, over_task.id)
            if index == -1:
                index = len(col)
            elif event.pointer is not None and event.over_rect is not None:
                if event.pointer.y > event.over_rect.midpoint_y:
                    index += 1
        else:
            index = len(col)

        return keyspace.clamp(index, len(col))
