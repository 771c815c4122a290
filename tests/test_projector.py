"""Tests for hover projection (dnd/projector.py)."""

from __future__ import annotations

import pytest

from crm_taskboard.board.model import Task, TaskStatus
from crm_taskboard.dnd.events import DragOver, Point, Rect, SortableHints
from crm_taskboard.dnd.keyspace import BoardIndex
from crm_taskboard.dnd.projector import Placeholder, Projection, Projector, resolve_moving_ids
from crm_taskboard.dnd.selection import SelectionSet

TODO, PROG, DONE = TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE


def _board() -> BoardIndex:
    return BoardIndex.build([
        Task(id="t1", status=TODO, order=0),
        Task(id="t2", status=TODO, order=1),
        Task(id="t3", status=TODO, order=2),
        Task(id="p1", status=PROG, order=0),
        Task(id="p2", status=PROG, order=1),
        Task(id="d1", status=DONE, order=0),
        Task(id="d2", status=DONE, order=1),
    ])


@pytest.fixture
def board() -> BoardIndex:
    return _board()


@pytest.fixture
def projector() -> Projector:
    return Projector()


def _over(active: str, over: str | None, **kwargs) -> DragOver:
    return DragOver.from_raw(active, over, **kwargs)


class TestMovingIds:
    def test_single_when_not_selected(self, board: BoardIndex) -> None:
        assert resolve_moving_ids(board, "t1", SelectionSet(["t2"])) == ("t1",)

    def test_selection_in_order(self, board: BoardIndex) -> None:
        sel = SelectionSet(["t3", "t1"])
        assert resolve_moving_ids(board, "t3", sel) == ("t1", "t3")


class TestTargetResolution:
    def test_no_target(self, board: BoardIndex, projector: Projector) -> None:
        assert projector.project(board, _over("t1", None), SelectionSet()) is None

    def test_unknown_dragged(self, board: BoardIndex, projector: Projector) -> None:
        assert projector.project(board, _over("zz", "d1"), SelectionSet()) is None

    def test_placeholder_target(self, board: BoardIndex, projector: Projector) -> None:
        proj = projector.project(board, _over("t1", "placeholder:Done"), SelectionSet())
        assert proj == Projection(("t1",), DONE, 2)

    def test_column_target(self, board: BoardIndex, projector: Projector) -> None:
        proj = projector.project(board, _over("t1", "InProgress"), SelectionSet())
        assert proj == Projection(("t1",), PROG, 2)

    def test_unknown_task_falls_back_to_source(self, board: BoardIndex, projector: Projector) -> None:
        proj = projector.project(board, _over("t2", "ghost"), SelectionSet())
        assert proj.target_status == TODO
        assert proj.insert_index == 3


class TestSameColumn:
    def test_uses_sortable_hints(self, board: BoardIndex, projector: Projector) -> None:
        proj = projector.project(board, _over("t1", "t3", hints=SortableHints(0, 2)), SelectionSet())
        assert proj.insert_index == 2

    def test_clamps_out_of_range_hints(self, board: BoardIndex, projector: Projector) -> None:
        proj = projector.project(board, _over("t1", "t3", hints=SortableHints(0, 40)), SelectionSet())
        assert proj.insert_index == 3

    def test_incomplete_hints_use_hovered_position(self, board: BoardIndex, projector: Projector) -> None:
        proj = projector.project(board, _over("t1", "t2", hints=SortableHints(None, 2)), SelectionSet())
        assert proj.insert_index == 1


class TestCrossColumn:
    def test_pointer_above_midpoint_inserts_before(self, board: BoardIndex, projector: Projector) -> None:
        event = _over("t1", "d2", pointer=Point(0, 105), over_rect=Rect(top=100, height=40))
        proj = projector.project(board, event, SelectionSet())
        assert proj == Projection(("t1",), DONE, 1)

    def test_pointer_below_midpoint_inserts_after(self, board: BoardIndex, projector: Projector) -> None:
        event = _over("t1", "d2", pointer=Point(0, 130), over_rect=Rect(top=100, height=40))
        proj = projector.project(board, event, SelectionSet())
        assert proj.insert_index == 2

    def test_no_geometry_inserts_before(self, board: BoardIndex, projector: Projector) -> None:
        proj = projector.project(board, _over("t1", "d1"), SelectionSet())
        assert proj.insert_index == 0

    def test_moving_ids_excluded_from_target_column(self, projector: Projector) -> None:
        board = BoardIndex.build([
            Task(id="a", status=TODO, order=0),
            Task(id="x", status=DONE, order=0),
            Task(id="y", status=DONE, order=1),
        ])
        sel = SelectionSet(["a", "x"])
        proj = projector.project(board, _over("a", "y"), sel)
        assert proj.moving_ids == ("a", "x")
        assert proj.insert_index == 0

    def test_placeholder_reuses_previous_index(self, board: BoardIndex, projector: Projector) -> None:
        previous = Projection(("t1",), DONE, 1)
        proj = projector.project(board, _over("t1", "placeholder:Done"), SelectionSet(), previous=previous)
        assert proj.insert_index == 1

    def test_previous_for_other_column_ignored(self, board: BoardIndex, projector: Projector) -> None:
        previous = Projection(("t1",), PROG, 0)
        proj = projector.project(board, _over("t1", "placeholder:Done"), SelectionSet(), previous=previous)
        assert proj.insert_index == 2

    def test_multi_select_placeholder_count(self, board: BoardIndex, projector: Projector) -> None:
        sel = SelectionSet(["t1", "t2"])
        proj = projector.project(board, _over("t2", "placeholder:InProgress"), sel)
        assert proj.placeholder() == Placeholder(PROG, 2, 2)
        assert proj.placeholder().to_dict() == {"target_status": "InProgress", "insert_index": 2, "count": 2}
