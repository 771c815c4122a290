"""Drag session state machine.

``Idle -> Dragging -> Committing -> Idle``, or ``Dragging -> Idle`` when the
drag is cancelled or released over nothing.  The session is the only writer
of the placeholder sink and clears the selection whenever a drag ends.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional, Protocol

from ..board.store import TaskStore
from ..constants import DEFAULT_FRAME_INTERVAL_MS
from .committer import CommitResult, Committer
from .events import DragEnd, DragOver, DragStart, target_id
from .keyspace import BoardIndex
from .projector import Placeholder, Projection, Projector, resolve_moving_ids
from .selection import SelectionSet

logger = logging.getLogger(__name__)


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


class PlaceholderSink(Protocol):
    def set_placeholder(self, descriptor: Optional[Placeholder]) -> None:
        ...


class RecordingPlaceholderSink:
    """Keeps the last published descriptor; handy for servers and tests."""

    def __init__(self) -> None:
        self.current: Optional[Placeholder] = None
        self.publishes = 0

    def set_placeholder(self, descriptor: Optional[Placeholder]) -> None:
        self.current = descriptor
        self.publishes += 1


class FrameThrottle:
    """Allow at most one hover recomputation per frame interval."""

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.interval = interval
        self.clock = clock
        self._last: Optional[float] = None

    def ready(self) -> bool:
        now = self.clock()
        if self._last is not None and now - self._last < self.interval:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None


class DragSession:
    """Thread one drag through start / over / end.

    Parameters
    ----------
    store:
        Owner of the task list; read at drag start and updated once per drop.
    selection:
        Current multi-select; cleared when the drag ends.
    sink:
        Receives placeholder descriptors for the rendering layer.
    """

    def __init__(
        self,
        store: TaskStore,
        selection: SelectionSet,
        sink: Optional[PlaceholderSink] = None,
        *,
        projector: Optional[Projector] = None,
        committer: Optional[Committer] = None,
        throttle: Optional[FrameThrottle] = None,
    ) -> None:
        self.store = store
        self.selection = selection
        self.sink = sink or RecordingPlaceholderSink()
        self.projector = projector or Projector()
        self.committer = committer or Committer()
        self.throttle = throttle or FrameThrottle(DEFAULT_FRAME_INTERVAL_MS / 1000.0)

        self.phase = DragPhase.IDLE
        self.active_id: Optional[str] = None
        self.projection: Optional[Projection] = None
        self.placeholder: Optional[Placeholder] = None
        self._board: Optional[BoardIndex] = None
        self._moving: tuple[str, ...] = ()
        self._pending: Optional[DragOver] = None
        self._hovered = False

    @property
    def dragging(self) -> bool:
        return self.phase == DragPhase.DRAGGING

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, event: DragStart) -> Optional[Projection]:
        """Capture the dragged ids and seed a projection equal to where they sit."""
        if self.phase != DragPhase.IDLE:
            logger.info("Drag of %s started while %s was active; discarding", event.active_id, self.active_id)
            self._reset(clear_selection=False)

        board = BoardIndex.build(self.store.get_tasks())
        task = board.get(event.active_id)
        if task is None:
            logger.info("Drag start for unknown task %s ignored", event.active_id)
            return None

        self._board = board
        self.active_id = task.id
        self._moving = resolve_moving_ids(board, task.id, self.selection)
        self.projection = Projection(self._moving, task.status, self._seed_index(board, task.status))
        self._hovered = False
        self.phase = DragPhase.DRAGGING
        self.throttle.reset()
        self._publish(None)
        logger.debug("Drag started for %s (moving %s)", task.id, list(self._moving))
        return self.projection

    def over(self, event: DragOver) -> Optional[Placeholder]:
        """Recompute the projection for a hover and publish the placeholder."""
        if not self.dragging or event.active_id != self.active_id:
            return self.placeholder
        self._hovered = True
        if not self.throttle.ready():
            self._pending = event
            return self.placeholder
        self._pending = None
        self._project(event)
        return self.placeholder

    def end(self, event: DragEnd) -> CommitResult:
        """Commit the last projection, or discard it when there is no target."""
        if not self.dragging or event.active_id != self.active_id:
            self._reset()
            return CommitResult.skipped("not_dragging")

        if self._pending is not None:
            self._project(self._pending)
            self._pending = None

        projection = self.projection
        if event.over is None or projection is None:
            logger.info("Drag of %s released outside any target", event.active_id)
            self._reset()
            return CommitResult.skipped("no_target")
        if not self._hovered:
            logger.info("Drag of %s released without moving", event.active_id)
            self._reset()
            return CommitResult.skipped("unchanged")

        self.phase = DragPhase.COMMITTING
        try:
            result = self.committer.commit(self.store, projection, event.active_id, event.over)
        finally:
            self._reset()
        logger.debug("Drop on %s -> %s", target_id(event.over), result)
        return result

    def cancel(self) -> None:
        """Drop the pending projection.  Safe to call in any phase."""
        if self.phase != DragPhase.IDLE:
            logger.info("Drag of %s cancelled", self.active_id)
        self._reset()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _project(self, event: DragOver) -> None:
        if self._board is None:
            return
        projection = self.projector.project(
            self._board, event, self.selection, previous=self.projection, moving_ids=self._moving
        )
        self.projection = projection
        if projection is None:
            self._publish(None)
        elif projection.target_status == self._board.by_id[self.active_id].status:
            # Same-column moves are animated by the sortable list itself.
            self._publish(None)
        else:
            self._publish(projection.placeholder())

    def _seed_index(self, board: BoardIndex, status) -> int:
        """Stationary cards above the moving block in its own column."""
        moving = set(self._moving)
        above = 0
        for task in board.column(status):
            if task.id in moving:
                break
            above += 1
        return above

    def _publish(self, descriptor: Optional[Placeholder]) -> None:
        if descriptor == self.placeholder:
            return
        self.placeholder = descriptor
        self.sink.set_placeholder(descriptor)

    def _reset(self, clear_selection: bool = True) -> None:
        self.phase = DragPhase.IDLE
        self.active_id = None
        self.projection = None
        self._board = None
        self._moving = ()
        self._pending = None
        self._hovered = False
        self._publish(None)
        if clear_selection:
            self.selection.clear()
