"""Provide the public `crm_taskboard` package exports."""

from __future__ import annotations

from .board.engine import BoardEngine
from .board.model import Task, TaskStatus

__version__ = "0.1.0"

__all__ = ["BoardEngine", "Task", "TaskStatus", "__version__"]
