"""Board API endpoints.

Provides a FastAPI router for the board view, quick-add, multi-select and the
three drag lifecycle callbacks.  It is mounted under ``/api/board`` by
``create_app``.  One drag session is active per app (single dragger).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field

from ..board.engine import BoardEngine
from ..board.model import TaskStatus
from ..dnd.events import DragEnd, DragOver, DragStart, Point, Rect, SortableHints
from ..dnd.selection import SelectionSet
from ..dnd.session import DragSession, RecordingPlaceholderSink


# ---------------------------------------------------------------------------
# Pydantic request / response models
# ---------------------------------------------------------------------------

class CreateTaskRequest(BaseModel):
    title: str
    status: str = TaskStatus.TODO.value
    assignees: list[str] = Field(default_factory=list)
    after_id: Optional[str] = None
    at_top: bool = False
    description: str = ""
    priority: Optional[str] = None


class SelectionClickRequest(BaseModel):
    task_id: str
    shift: bool = False
    ctrl: bool = False
    timestamp: Optional[float] = None
    last_interaction_at: Optional[float] = None


class PointModel(BaseModel):
    x: float
    y: float


class RectModel(BaseModel):
    top: float
    height: float
    left: float = 0.0
    width: float = 0.0


class HintsModel(BaseModel):
    active_index: Optional[int] = None
    over_index: Optional[int] = None


class DragStartRequest(BaseModel):
    active_id: str


class DragOverRequest(BaseModel):
    active_id: str
    over_id: Optional[str] = None
    pointer: Optional[PointModel] = None
    over_rect: Optional[RectModel] = None
    hints: Optional[HintsModel] = None


class DragEndRequest(BaseModel):
    active_id: str
    over_id: Optional[str] = None
    hints: Optional[HintsModel] = None


class TaskResponse(BaseModel):
    task: dict[str, Any]


class BoardResponse(BaseModel):
    columns: dict[str, list[dict[str, Any]]]


class SelectionResponse(BaseModel):
    selected_ids: list[str]
    last_selected_id: Optional[str] = None
    applied: bool = True


class DragStateResponse(BaseModel):
    phase: str
    active_id: Optional[str] = None
    projection: Optional[dict[str, Any]] = None
    placeholder: Optional[dict[str, Any]] = None


class CommitResponse(BaseModel):
    result: dict[str, Any]
    columns: dict[str, list[dict[str, Any]]]


class EventsResponse(BaseModel):
    events: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _hints(model: Optional[HintsModel]) -> Optional[SortableHints]:
    if model is None:
        return None
    return SortableHints(model.active_index, model.over_index)


def _selection_response(selection: SelectionSet, applied: bool = True) -> SelectionResponse:
    return SelectionResponse(
        selected_ids=list(selection),
        last_selected_id=selection.last_selected_id,
        applied=applied,
    )


def _drag_state(session: DragSession) -> DragStateResponse:
    return DragStateResponse(
        phase=session.phase.value,
        active_id=session.active_id,
        projection=session.projection.to_dict() if session.projection else None,
        placeholder=session.placeholder.to_dict() if session.placeholder else None,
    )


class BoardWorkspace:
    """Selection, placeholder sink and drag session for one project board."""

    def __init__(self, engine: BoardEngine) -> None:
        self.engine = engine
        self.selection = engine.new_selection()
        self.sink = RecordingPlaceholderSink()
        self.session = engine.new_session(self.selection, self.sink)


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------

def create_board_router(get_engine: Any) -> APIRouter:
    """Create the board API router.

    Parameters
    ----------
    get_engine:
        A callable ``(project_dir_param: str | None) -> BoardEngine`` that
        resolves the engine for the current request's project directory.
    """
    router = APIRouter(prefix="/api/board", tags=["board"])
    workspaces: dict[str, BoardWorkspace] = {}

    def _workspace(project_dir: Optional[str]) -> BoardWorkspace:
        engine = get_engine(project_dir)
        key = str(engine.state_dir)
        ws = workspaces.get(key)
        if ws is None or ws.engine is not engine:
            ws = BoardWorkspace(engine)
            workspaces[key] = ws
        return ws

    # ------------------------------------------------------------------
    # Board
    # ------------------------------------------------------------------

    @router.get("", response_model=BoardResponse)
    async def get_board(project_dir: Optional[str] = Query(None)) -> BoardResponse:
        engine = get_engine(project_dir)
        return BoardResponse(columns=engine.get_board())

    @router.post("/tasks", response_model=TaskResponse, status_code=201)
    async def create_task(
        body: CreateTaskRequest,
        project_dir: Optional[str] = Query(None),
    ) -> TaskResponse:
        engine = get_engine(project_dir)
        try:
            status = TaskStatus.parse(body.status)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        try:
            task = engine.create_task(
                body.title,
                status,
                body.assignees,
                after_id=body.after_id,
                at_top=body.at_top,
                description=body.description,
                priority=body.priority,
            )
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Task not found: {body.after_id}")
        return TaskResponse(task=task.to_dict())

    @router.get("/tasks/{task_id}", response_model=TaskResponse)
    async def get_task(task_id: str, project_dir: Optional[str] = Query(None)) -> TaskResponse:
        task = get_engine(project_dir).get_task(task_id)
        if task is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
        return TaskResponse(task=task.to_dict())

    @router.get("/events", response_model=EventsResponse)
    async def get_events(
        project_dir: Optional[str] = Query(None),
        limit: int = Query(100, ge=1, le=1000),
    ) -> EventsResponse:
        engine = get_engine(project_dir)
        return EventsResponse(events=engine.get_recent_events(limit=limit))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @router.get("/selection", response_model=SelectionResponse)
    async def get_selection(project_dir: Optional[str] = Query(None)) -> SelectionResponse:
        return _selection_response(_workspace(project_dir).selection)

    @router.post("/selection", response_model=SelectionResponse)
    async def click_selection(
        body: SelectionClickRequest,
        project_dir: Optional[str] = Query(None),
    ) -> SelectionResponse:
        ws = _workspace(project_dir)
        applied = ws.selection.click(
            body.task_id,
            ws.engine.store.get_tasks(),
            shift=body.shift,
            ctrl=body.ctrl,
            timestamp=body.timestamp,
            last_interaction_at=body.last_interaction_at,
        )
        return _selection_response(ws.selection, applied)

    @router.post("/selection/all", response_model=SelectionResponse)
    async def toggle_select_all(
        status: Optional[str] = Query(None),
        project_dir: Optional[str] = Query(None),
    ) -> SelectionResponse:
        ws = _workspace(project_dir)
        tasks = ws.engine.store.get_tasks()
        if status is not None:
            try:
                column = TaskStatus.parse(status)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc))
            tasks = [t for t in tasks if t.status == column]
        ws.selection.toggle_select_all(tasks)
        return _selection_response(ws.selection)

    @router.delete("/selection", response_model=SelectionResponse)
    async def clear_selection(project_dir: Optional[str] = Query(None)) -> SelectionResponse:
        ws = _workspace(project_dir)
        ws.selection.clear()
        return _selection_response(ws.selection)

    # ------------------------------------------------------------------
    # Drag lifecycle
    # ------------------------------------------------------------------

    @router.get("/drag", response_model=DragStateResponse)
    async def get_drag(project_dir: Optional[str] = Query(None)) -> DragStateResponse:
        return _drag_state(_workspace(project_dir).session)

    @router.get("/placeholder")
    async def get_placeholder(project_dir: Optional[str] = Query(None)) -> dict[str, Any]:
        current = _workspace(project_dir).sink.current
        return {"placeholder": current.to_dict() if current else None}

    @router.post("/drag/start", response_model=DragStateResponse)
    async def drag_start(
        body: DragStartRequest,
        project_dir: Optional[str] = Query(None),
    ) -> DragStateResponse:
        ws = _workspace(project_dir)
        if ws.session.start(DragStart(body.active_id)) is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {body.active_id}")
        return _drag_state(ws.session)

    @router.post("/drag/over", response_model=DragStateResponse)
    async def drag_over(
        body: DragOverRequest,
        project_dir: Optional[str] = Query(None),
    ) -> DragStateResponse:
        ws = _workspace(project_dir)
        event = DragOver.from_raw(
            body.active_id,
            body.over_id,
            pointer=Point(body.pointer.x, body.pointer.y) if body.pointer else None,
            over_rect=(
                Rect(body.over_rect.top, body.over_rect.height, body.over_rect.left, body.over_rect.width)
                if body.over_rect
                else None
            ),
            hints=_hints(body.hints),
        )
        ws.session.over(event)
        return _drag_state(ws.session)

    @router.post("/drag/end", response_model=CommitResponse)
    async def drag_end(
        body: DragEndRequest,
        project_dir: Optional[str] = Query(None),
    ) -> CommitResponse:
        ws = _workspace(project_dir)
        result = ws.session.end(DragEnd.from_raw(body.active_id, body.over_id, _hints(body.hints)))
        ws.engine.record_commit(result)
        if result.applied:
            logger.info("Board drop applied: {}", result.to_dict())
        else:
            logger.debug("Board drop skipped: {}", result.reason)
        return CommitResponse(result=result.to_dict(), columns=ws.engine.get_board())

    @router.post("/drag/cancel", response_model=DragStateResponse)
    async def drag_cancel(project_dir: Optional[str] = Query(None)) -> DragStateResponse:
        ws = _workspace(project_dir)
        ws.session.cancel()
        return _drag_state(ws.session)

    return router
