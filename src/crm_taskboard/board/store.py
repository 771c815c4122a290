"""Task stores.

The drag engine only talks to the :class:`TaskStore` contract: a snapshot
read and a single functional update.  Two implementations live here: an
in-memory store used by embedding UIs and tests, and a YAML file store
(``.taskboard/tasks.yaml``) guarded by an exclusive file lock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..constants import LOCK_FILE, TASKS_FILE
from ..io_utils import FileLock, _atomic_write_yaml, _load_data_with_error
from .model import Task

TaskUpdater = Callable[[list[Task]], list[Task]]


class StoreCorruptError(RuntimeError):
    """Raised when the backing file exists but cannot be parsed."""


class TaskStore(ABC):
    @abstractmethod
    def get_tasks(self) -> list[Task]:
        raise NotImplementedError

    @abstractmethod
    def apply_update(self, updater: TaskUpdater) -> None:
        raise NotImplementedError

    def get(self, task_id: str) -> Optional[Task]:
        for task in self.get_tasks():
            if task.id == task_id:
                return task
        return None


class MemoryTaskStore(TaskStore):
    """Holds the task list in memory.  ``updates`` counts applied updates."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: list[Task] = list(tasks)
        self.updates = 0

    def get_tasks(self) -> list[Task]:
        return list(self._tasks)

    def apply_update(self, updater: TaskUpdater) -> None:
        self._tasks = list(updater(list(self._tasks)))
        self.updates += 1


class FileTaskStore(TaskStore):
    """File-backed store.

    Parameters
    ----------
    state_dir:
        Path to the ``.taskboard/`` directory.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir
        self._store_path = state_dir / TASKS_FILE
        self._lock = FileLock(state_dir / LOCK_FILE)

    @property
    def path(self) -> Path:
        return self._store_path

    def _load(self) -> list[Task]:
        data, err = _load_data_with_error(self._store_path, {})
        if err:
            raise StoreCorruptError(err)
        raw = data.get("tasks", [])
        if not isinstance(raw, list):
            raise StoreCorruptError(f"{self._store_path.name}: 'tasks' must be a list")
        return [Task.from_dict(d) for d in raw if isinstance(d, dict)]

    def _save(self, tasks: list[Task]) -> None:
        _atomic_write_yaml(self._store_path, {"version": 1, "tasks": [t.to_dict() for t in tasks]})

    def get_tasks(self) -> list[Task]:
        with self._lock:
            return self._load()

    def apply_update(self, updater: TaskUpdater) -> None:
        """Load, apply *updater*, and save, all under the file lock."""
        with self._lock:
            tasks = self._load()
            self._save(list(updater(tasks)))
