"""Multi-select state for the board.

The selection is the block that moves when one of its members is dragged.
Its drag order is the members' current ``order``, not the click order.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence

from ..board.model import Task
from ..constants import DEFAULT_CLICK_COOLDOWN_MS
from . import keyspace


class SelectionSet:
    def __init__(
        self,
        ids: Iterable[str] = (),
        *,
        click_cooldown: float = DEFAULT_CLICK_COOLDOWN_MS / 1000.0,
    ) -> None:
        self._ids: set[str] = set(ids)
        self.last_selected_id: Optional[str] = None
        self.click_cooldown = click_cooldown

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def is_selected(self, task_id: str) -> bool:
        return task_id in self._ids

    def ids_ordered_by(self, tasks: Sequence[Task]) -> list[str]:
        """Selected ids present in *tasks*, sorted by ``order`` ascending.

        Equal keys in different columns fall back to column order, then to
        the position in *tasks*.
        """
        ranked = [
            (t.order, t.status.column_index, i, t.id)
            for i, t in enumerate(tasks)
            if t.id in self._ids
        ]
        ranked.sort()
        return [task_id for *_, task_id in ranked]

    def selected_tasks(self, tasks: Sequence[Task]) -> list[Task]:
        return [t for t in tasks if t.id in self._ids]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def clear(self) -> None:
        self._ids = set()
        self.last_selected_id = None

    def apply(self, ids: Iterable[str], last_id: Optional[str] = None) -> None:
        self._ids = set(ids)
        if last_id is not None:
            self.last_selected_id = last_id

    def toggle(self, task_id: str) -> None:
        if task_id in self._ids:
            self._ids.discard(task_id)
        else:
            self._ids.add(task_id)
        self.last_selected_id = task_id

    def select_all(self, tasks: Iterable[Task]) -> None:
        self._ids = {t.id for t in tasks}
        self.last_selected_id = None

    def toggle_select_all(self, tasks: Iterable[Task]) -> None:
        items = list(tasks)
        if items and all(t.id in self._ids for t in items):
            self._ids = set()
        else:
            self._ids = {t.id for t in items}
        self.last_selected_id = None

    def click(
        self,
        task_id: str,
        tasks: Sequence[Task],
        *,
        shift: bool = False,
        ctrl: bool = False,
        timestamp: Optional[float] = None,
        last_interaction_at: Optional[float] = None,
    ) -> bool:
        """Apply a card click.  Returns False when the click was ignored.

        A click landing within ``click_cooldown`` seconds of
        *last_interaction_at* (e.g. an inline editor just closed) is ignored.
        """
        if (
            timestamp is not None
            and last_interaction_at is not None
            and 0 <= timestamp - last_interaction_at < self.click_cooldown
        ):
            return False

        clicked = next((t for t in tasks if t.id == task_id), None)
        if clicked is None:
            return False

        if shift and self.last_selected_id:
            anchor = next((t for t in tasks if t.id == self.last_selected_id), None)
            if anchor is not None and anchor.status == clicked.status:
                col = keyspace.column(tasks, clicked.status)
                a = keyspace.index_of(col, anchor.id)
                b = keyspace.index_of(col, task_id)
                lo, hi = min(a, b), max(a, b)
                self._ids.update(t.id for t in col[lo:hi + 1])
                self.last_selected_id = task_id
                return True
            self.toggle(task_id)
            return True

        if ctrl:
            self.toggle(task_id)
            return True

        self._ids = {task_id}
        self.last_selected_id = task_id
        return True
