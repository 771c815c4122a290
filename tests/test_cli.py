from __future__ import annotations

import json
from pathlib import Path

import pytest

from crm_taskboard.board.engine import BoardEngine
from crm_taskboard.cli import build_parser, main


def _run(capsys, tmp_path: Path, *args: str) -> tuple[int, dict]:
    rc = main(['--project-dir', str(tmp_path), *args])
    out = capsys.readouterr().out
    return rc, json.loads(out) if out.strip() else {}


def _column(tmp_path: Path, status: str) -> list[str]:
    return [t['title'] for t in BoardEngine(tmp_path).get_board()[status]]


def test_add_and_board(tmp_path: Path, capsys) -> None:
    rc, payload = _run(capsys, tmp_path, 'add', 'Call Acme', '--assignee', 'amy')
    assert rc == 0
    assert payload['task']['assignees'] == ['amy']

    rc, payload = _run(capsys, tmp_path, 'board')
    assert rc == 0
    assert [t['title'] for t in payload['columns']['ToDo']] == ['Call Acme']


def test_add_after_and_top(tmp_path: Path, capsys) -> None:
    _, first = _run(capsys, tmp_path, 'add', 'A')
    _run(capsys, tmp_path, 'add', 'B')
    _run(capsys, tmp_path, 'add', 'Mid', '--after', first['task']['id'])
    _run(capsys, tmp_path, 'add', 'Top', '--top')
    assert _column(tmp_path, 'ToDo') == ['Top', 'A', 'Mid', 'B']


def test_add_rejects_bad_status(tmp_path: Path, capsys) -> None:
    assert main(['--project-dir', str(tmp_path), 'add', 'X', '--status', 'Archived']) == 1
    assert 'Unknown task status' in capsys.readouterr().err


def test_add_unknown_anchor(tmp_path: Path, capsys) -> None:
    assert main(['--project-dir', str(tmp_path), 'add', 'X', '--after', 'task-nope']) == 1


def test_move_across_columns(tmp_path: Path, capsys) -> None:
    _, t1 = _run(capsys, tmp_path, 'add', 'T1')
    _run(capsys, tmp_path, 'add', 'D1', '--status', 'Done')
    _run(capsys, tmp_path, 'add', 'D2', '--status', 'Done')

    rc, payload = _run(capsys, tmp_path, 'move', t1['task']['id'], '--to', 'Done', '--index', '1')
    assert rc == 0
    assert payload['result']['applied'] is True
    assert payload['result']['history_events'] == 1
    assert _column(tmp_path, 'Done') == ['D1', 'T1', 'D2']
    assert _column(tmp_path, 'ToDo') == []
    assert len(BoardEngine(tmp_path).get_recent_events()) == 1


def test_move_to_end_of_column(tmp_path: Path, capsys) -> None:
    _, t1 = _run(capsys, tmp_path, 'add', 'T1')
    _run(capsys, tmp_path, 'add', 'D1', '--status', 'Done')
    _run(capsys, tmp_path, 'move', t1['task']['id'], '--to', 'Done')
    assert _column(tmp_path, 'Done') == ['D1', 'T1']


def test_move_within_column(tmp_path: Path, capsys) -> None:
    _run(capsys, tmp_path, 'add', 'A')
    _run(capsys, tmp_path, 'add', 'B')
    _, c = _run(capsys, tmp_path, 'add', 'C')

    rc, payload = _run(capsys, tmp_path, 'move', c['task']['id'], '--to', 'ToDo', '--index', '0')
    assert rc == 0
    assert payload['result']['history_events'] == 0
    assert _column(tmp_path, 'ToDo') == ['C', 'A', 'B']


def test_move_in_place_is_skipped(tmp_path: Path, capsys) -> None:
    _, a = _run(capsys, tmp_path, 'add', 'A')
    rc, payload = _run(capsys, tmp_path, 'move', a['task']['id'], '--to', 'ToDo')
    assert rc == 0
    assert payload['result']['applied'] is False
    assert BoardEngine(tmp_path).get_recent_events() == []


def test_move_unknown_task(tmp_path: Path, capsys) -> None:
    assert main(['--project-dir', str(tmp_path), 'move', 'task-nope', '--to', 'Done']) == 1


def test_serve_parser_defaults() -> None:
    args = build_parser().parse_args(['serve'])
    assert args.host == '127.0.0.1'
    assert args.port == 8000
    assert not args.reload


def test_command_required() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
