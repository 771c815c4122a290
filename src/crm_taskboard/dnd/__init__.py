"""Drag-and-drop reordering engine for the task board.

``keyspace`` keeps per-column order keys, ``selection`` the multi-select,
``projector`` computes hover projections, ``committer`` applies drops, and
``session`` wires the three drag lifecycle callbacks together.
"""

from .committer import CommitResult, Committer, MissingTaskError, NoTargetError, ReorderError, SelfDropError
from .events import (
    ColumnTarget,
    DragEnd,
    DragOver,
    DragStart,
    DropTarget,
    PlaceholderTarget,
    Point,
    Rect,
    SortableHints,
    TaskTarget,
    parse_over_id,
)
from .projector import Placeholder, Projection, Projector
from .selection import SelectionSet
from .session import DragPhase, DragSession, FrameThrottle, PlaceholderSink, RecordingPlaceholderSink

__all__ = [
    "ColumnTarget",
    "CommitResult",
    "Committer",
    "DragEnd",
    "DragOver",
    "DragPhase",
    "DragSession",
    "DragStart",
    "DropTarget",
    "FrameThrottle",
    "MissingTaskError",
    "NoTargetError",
    "Placeholder",
    "PlaceholderSink",
    "PlaceholderTarget",
    "Point",
    "Projection",
    "Projector",
    "Rect",
    "RecordingPlaceholderSink",
    "ReorderError",
    "SelectionSet",
    "SelfDropError",
    "SortableHints",
    "TaskTarget",
    "parse_over_id",
]
