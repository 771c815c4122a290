"""Board engine: board view, quick-add, and drag sessions over a file store.

This is the entry-point the API and CLI use.  It owns a
:class:`FileTaskStore` under ``<project>/.taskboard/`` and records applied
drops to ``artifacts/board_events.jsonl``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from ..config import BoardConfig, load_board_config
from ..constants import ARTIFACTS_DIR, BOARD_EVENTS_FILE, STATE_DIR_NAME
from ..dnd import keyspace
from ..dnd.committer import CommitResult, Committer
from ..dnd.selection import SelectionSet
from ..dnd.session import DragSession, FrameThrottle, PlaceholderSink
from ..io_utils import _append_event, _read_events
from .model import Task, TaskStatus
from .store import FileTaskStore

logger = logging.getLogger(__name__)


class BoardEngine:
    """Manage the task board for one project directory.

    Parameters
    ----------
    project_dir:
        Directory that holds (or will hold) ``.taskboard/``.
    config:
        Overrides the config loaded from ``.taskboard/config.yaml``.
    """

    def __init__(self, project_dir: Path, config: Optional[BoardConfig] = None) -> None:
        self.project_dir = project_dir
        self.state_dir = project_dir / STATE_DIR_NAME
        if config is None:
            config, err = load_board_config(project_dir)
            if err:
                logger.warning("Ignoring board config: %s", err)
        self.config = config
        self.store = FileTaskStore(self.state_dir)
        self._events_path = self.state_dir / ARTIFACTS_DIR / BOARD_EVENTS_FILE

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.store.get(task_id)

    def get_board(self) -> dict[str, list[dict[str, Any]]]:
        """Return tasks grouped by status column, each sorted by ``order``."""
        tasks = self.store.get_tasks()
        return {
            status.value: [t.to_dict() for t in keyspace.column(tasks, status)]
            for status in TaskStatus
        }

    # ------------------------------------------------------------------
    # Quick-add
    # ------------------------------------------------------------------

    def create_task(
        self,
        title: str,
        status: TaskStatus = TaskStatus.TODO,
        assignees: Iterable[str] = (),
        *,
        after_id: Optional[str] = None,
        at_top: bool = False,
        description: str = "",
        priority: Optional[str] = None,
    ) -> Task:
        """Create a task at the end of *status*, at its top, or right after *after_id*.

        Seeded keys may be fractional; the next drop into that column
        renumbers it densely.  Raises :class:`KeyError` for an unknown
        *after_id*.
        """
        task = Task(
            title=title,
            status=status,
            assignees=[a for a in assignees if a],
            description=description,
            priority=priority,
        )

        def _insert(prev: list[Task]) -> list[Task]:
            if after_id is not None:
                anchor = next((t for t in prev if t.id == after_id), None)
                if anchor is None:
                    raise KeyError(after_id)
                task.status = anchor.status
                col = keyspace.column(prev, anchor.status)
                pos = keyspace.index_of(col, anchor.id)
                nxt = col[pos + 1].order if pos + 1 < len(col) else None
                task.order = keyspace.key_between(anchor.order, nxt)
            else:
                col = keyspace.column(prev, task.status)
                if not col:
                    task.order = 0
                elif at_top:
                    task.order = keyspace.key_between(None, col[0].order)
                else:
                    task.order = keyspace.key_between(col[-1].order, None)
            return [*prev, task]

        self.store.apply_update(_insert)
        logger.info("Created task %s in %s: %s", task.id, task.status.value, title)
        return task

    # ------------------------------------------------------------------
    # Drag sessions
    # ------------------------------------------------------------------

    def new_selection(self) -> SelectionSet:
        return SelectionSet(click_cooldown=self.config.click_cooldown)

    def new_session(
        self,
        selection: Optional[SelectionSet] = None,
        sink: Optional[PlaceholderSink] = None,
    ) -> DragSession:
        return DragSession(
            self.store,
            selection if selection is not None else self.new_selection(),
            sink,
            committer=Committer(system_author=self.config.system_author),
            throttle=FrameThrottle(self.config.frame_interval),
        )

    # ------------------------------------------------------------------
    # Board events
    # ------------------------------------------------------------------

    def record_commit(self, result: CommitResult) -> None:
        """Append an applied drop to the board event log."""
        if not result.applied:
            return
        try:
            _append_event(self._events_path, {"type": "board.reorder", **result.to_dict()})
        except OSError:
            logger.exception("Failed to append board event for %s", list(result.moved_ids))

    def get_recent_events(self, limit: int = 100) -> list[dict[str, Any]]:
        return _read_events(self._events_path, limit)
