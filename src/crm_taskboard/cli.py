from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .board.engine import BoardEngine
from .board.model import Task, TaskStatus
from .dnd.events import DragEnd, DragOver, DragStart, DropTarget, PlaceholderTarget, SortableHints, TaskTarget
from .dnd.keyspace import BoardIndex
from .server import create_app


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _engine(args: argparse.Namespace) -> BoardEngine:
    return BoardEngine(_resolve_project_dir(args.project_dir))


def _parse_status(raw: str) -> Optional[TaskStatus]:
    try:
        return TaskStatus.parse(raw)
    except ValueError as exc:
        sys.stderr.write(str(exc) + '\n')
        return None


def _board(args: argparse.Namespace) -> int:
    engine = _engine(args)
    sys.stdout.write(json.dumps({'columns': engine.get_board()}, indent=2) + '\n')
    return 0


def _add(args: argparse.Namespace) -> int:
    status = _parse_status(args.status)
    if status is None:
        return 1
    engine = _engine(args)
    try:
        task = engine.create_task(
            args.title,
            status,
            args.assignee or (),
            after_id=args.after,
            at_top=args.top,
            description=args.description,
        )
    except KeyError:
        sys.stderr.write(f"Task not found: {args.after}\n")
        return 1
    sys.stdout.write(json.dumps({'task': task.to_dict()}, indent=2) + '\n')
    return 0


def _drop_target(
    board: BoardIndex, task: Task, status: TaskStatus, index: Optional[int]
) -> tuple[DropTarget, Optional[SortableHints]]:
    """Pick the hover target a pointer would use to land *task* at *index*."""
    if status == task.status:
        hints = SortableHints(board.position(task.id), index) if index is not None else None
        return PlaceholderTarget(status), hints
    col = board.column(status)
    if index is not None and 0 <= index < len(col):
        return TaskTarget(col[index].id), None
    return PlaceholderTarget(status), None


def _move(args: argparse.Namespace) -> int:
    status = _parse_status(args.to)
    if status is None:
        return 1
    engine = _engine(args)
    board = BoardIndex.build(engine.store.get_tasks())
    task = board.get(args.task_id)
    if task is None:
        sys.stderr.write(f"Task not found: {args.task_id}\n")
        return 1

    over, hints = _drop_target(board, task, status, args.index)
    session = engine.new_session()
    session.start(DragStart(task.id))
    session.over(DragOver(task.id, over, hints=hints))
    result = session.end(DragEnd(task.id, over, hints))
    engine.record_commit(result)
    if not result.applied:
        logger.info("Move of {} skipped: {}", task.id, result.reason)
    sys.stdout.write(json.dumps({'result': result.to_dict()}, indent=2) + '\n')
    return 0


def _serve(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install uvicorn to run the board server: pip install uvicorn\n")
        return 1

    project_dir = _resolve_project_dir(args.project_dir)
    logger.info("Serving board for {} on {}:{}", project_dir, args.host, args.port)
    app = create_app(project_dir=project_dir)
    uvicorn.run(app, host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='CRM task board CLI')
    parser.add_argument('--project-dir', default=None, help='Target project directory (default: current working directory)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    board = subparsers.add_parser('board', help='Print the board columns')
    board.set_defaults(func=_board)

    add = subparsers.add_parser('add', help='Quick-add a task')
    add.add_argument('title')
    add.add_argument('--status', default=TaskStatus.TODO.value)
    add.add_argument('--assignee', action='append', default=None)
    add.add_argument('--description', default='')
    placement = add.add_mutually_exclusive_group()
    placement.add_argument('--after', default=None, help='Insert right after this task id')
    placement.add_argument('--top', action='store_true', help='Insert at the top of the column')
    add.set_defaults(func=_add)

    move = subparsers.add_parser('move', help='Move a task with a full drag session')
    move.add_argument('task_id')
    move.add_argument('--to', required=True, help='Target status column')
    move.add_argument('--index', default=None, type=int, help='Insert position in the target column')
    move.set_defaults(func=_move)

    serve = subparsers.add_parser('serve', help='Start the board web server')
    serve.add_argument('--host', default='127.0.0.1')
    serve.add_argument('--port', default=8000, type=int)
    serve.add_argument('--reload', action='store_true')
    serve.set_defaults(func=_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == '__main__':
    raise SystemExit(main())
