"""Tests for the board API endpoints."""

from __future__ import annotations

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from crm_taskboard.server.api import create_app


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    project_dir = tmp_path / "board_project"
    state_dir = project_dir / ".taskboard"
    state_dir.mkdir(parents=True)
    (state_dir / "config.yaml").write_text("drag:\n  frame_interval_ms: 0\n")
    return project_dir


@pytest.fixture
def app(project_dir: Path):
    return create_app(project_dir=project_dir, enable_cors=False)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _add(client: AsyncClient, title: str, status: str = "ToDo", **extra) -> str:
    resp = await client.post("/api/board/tasks", json={"title": title, "status": status, **extra})
    assert resp.status_code == 201
    return resp.json()["task"]["id"]


def _titles(columns: dict, status: str) -> list[str]:
    return [t["title"] for t in columns[status]]


@pytest.mark.anyio
class TestBoard:
    async def test_root(self, client: AsyncClient) -> None:
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json()["status"] == "running"

    async def test_empty_board(self, client: AsyncClient) -> None:
        resp = await client.get("/api/board")
        assert resp.status_code == 200
        assert resp.json()["columns"] == {"ToDo": [], "InProgress": [], "Done": []}

    async def test_quick_add(self, client: AsyncClient) -> None:
        first = await _add(client, "Call Acme", assignees=["amy"])
        await _add(client, "Email Globex")
        await _add(client, "Follow up", after_id=first)
        await _add(client, "Urgent", at_top=True)

        resp = await client.get("/api/board")
        assert _titles(resp.json()["columns"], "ToDo") == ["Urgent", "Call Acme", "Follow up", "Email Globex"]

        resp = await client.get(f"/api/board/tasks/{first}")
        assert resp.status_code == 200
        assert resp.json()["task"]["assignees"] == ["amy"]

    async def test_quick_add_label_status(self, client: AsyncClient) -> None:
        await _add(client, "Doing", status="In Progress")
        resp = await client.get("/api/board")
        assert _titles(resp.json()["columns"], "InProgress") == ["Doing"]

    async def test_bad_status(self, client: AsyncClient) -> None:
        resp = await client.post("/api/board/tasks", json={"title": "X", "status": "Archived"})
        assert resp.status_code == 400

    async def test_unknown_anchor(self, client: AsyncClient) -> None:
        resp = await client.post("/api/board/tasks", json={"title": "X", "after_id": "task-nope"})
        assert resp.status_code == 404

    async def test_unknown_task(self, client: AsyncClient) -> None:
        resp = await client.get("/api/board/tasks/task-nope")
        assert resp.status_code == 404


@pytest.mark.anyio
class TestSelection:
    async def test_click_and_clear(self, client: AsyncClient) -> None:
        a = await _add(client, "A")
        b = await _add(client, "B")
        c = await _add(client, "C")

        resp = await client.post("/api/board/selection", json={"task_id": a})
        assert resp.json()["selected_ids"] == [a]
        resp = await client.post("/api/board/selection", json={"task_id": c, "shift": True})
        assert set(resp.json()["selected_ids"]) == {a, b, c}
        assert resp.json()["last_selected_id"] == c

        resp = await client.delete("/api/board/selection")
        assert resp.json()["selected_ids"] == []

    async def test_click_cooldown(self, client: AsyncClient) -> None:
        a = await _add(client, "A")
        resp = await client.post("/api/board/selection", json={
            "task_id": a, "timestamp": 5.1, "last_interaction_at": 5.0,
        })
        assert resp.json()["applied"] is False
        assert resp.json()["selected_ids"] == []

    async def test_toggle_select_all_column(self, client: AsyncClient) -> None:
        a = await _add(client, "A")
        await _add(client, "D", status="Done")
        resp = await client.post("/api/board/selection/all", params={"status": "ToDo"})
        assert resp.json()["selected_ids"] == [a]
        resp = await client.post("/api/board/selection/all", params={"status": "ToDo"})
        assert resp.json()["selected_ids"] == []
        resp = await client.post("/api/board/selection/all", params={"status": "Nope"})
        assert resp.status_code == 400


@pytest.mark.anyio
class TestDrag:
    async def test_cross_column_drag(self, client: AsyncClient) -> None:
        t1 = await _add(client, "T1")
        await _add(client, "T4", status="Done")

        resp = await client.post("/api/board/drag/start", json={"active_id": t1})
        assert resp.json()["phase"] == "dragging"

        resp = await client.post("/api/board/drag/over", json={"active_id": t1, "over_id": "placeholder:Done"})
        assert resp.json()["placeholder"] == {"target_status": "Done", "insert_index": 1, "count": 1}
        resp = await client.get("/api/board/placeholder")
        assert resp.json()["placeholder"]["target_status"] == "Done"

        resp = await client.post("/api/board/drag/end", json={"active_id": t1, "over_id": "placeholder:Done"})
        data = resp.json()
        assert data["result"]["applied"] is True
        assert data["result"]["history_events"] == 1
        assert _titles(data["columns"], "Done") == ["T4", "T1"]
        assert data["columns"]["ToDo"] == []

        history = data["columns"]["Done"][1]["history"]
        assert history[0]["content"] == "Status changed: ToDo → Done"

        resp = await client.get("/api/board/placeholder")
        assert resp.json()["placeholder"] is None
        resp = await client.get("/api/board/events")
        assert resp.json()["events"][0]["type"] == "board.reorder"

    async def test_multi_select_drag(self, client: AsyncClient) -> None:
        ids = [await _add(client, name, status="InProgress") for name in ("T1", "T2", "T3", "T4")]
        t5 = await _add(client, "T5", status="Done")
        t6 = await _add(client, "T6", status="Done")

        await client.post("/api/board/selection", json={"task_id": ids[1]})
        await client.post("/api/board/selection", json={"task_id": ids[2], "ctrl": True})

        await client.post("/api/board/drag/start", json={"active_id": ids[2]})
        resp = await client.post("/api/board/drag/over", json={
            "active_id": ids[2],
            "over_id": t6,
            "pointer": {"x": 5, "y": 102},
            "over_rect": {"top": 100, "height": 40},
        })
        assert resp.json()["placeholder"] == {"target_status": "Done", "insert_index": 1, "count": 2}

        resp = await client.post("/api/board/drag/end", json={"active_id": ids[2], "over_id": t6})
        columns = resp.json()["columns"]
        assert _titles(columns, "Done") == ["T5", "T2", "T3", "T6"]
        assert [t["order"] for t in columns["Done"]] == [0, 1, 2, 3]
        assert _titles(columns, "InProgress") == ["T1", "T4"]
        assert columns["Done"][0]["id"] == t5

        resp = await client.get("/api/board/selection")
        assert resp.json()["selected_ids"] == []

    async def test_same_column_reorder(self, client: AsyncClient) -> None:
        t1 = await _add(client, "T1")
        await _add(client, "T2")
        t3 = await _add(client, "T3")

        await client.post("/api/board/drag/start", json={"active_id": t1})
        resp = await client.post("/api/board/drag/over", json={
            "active_id": t1, "over_id": t3, "hints": {"active_index": 0, "over_index": 2},
        })
        assert resp.json()["placeholder"] is None
        resp = await client.post("/api/board/drag/end", json={"active_id": t1, "over_id": t3})
        columns = resp.json()["columns"]
        assert _titles(columns, "ToDo") == ["T2", "T3", "T1"]
        assert all(t["history"] == [] for t in columns["ToDo"])

    async def test_drop_outside(self, client: AsyncClient) -> None:
        t1 = await _add(client, "T1")
        await client.post("/api/board/selection", json={"task_id": t1})
        await client.post("/api/board/drag/start", json={"active_id": t1})
        await client.post("/api/board/drag/over", json={"active_id": t1, "over_id": "Done"})

        resp = await client.post("/api/board/drag/end", json={"active_id": t1, "over_id": None})
        data = resp.json()
        assert data["result"] == {
            "applied": False,
            "reason": "no_target",
            "moved_ids": [],
            "source_status": None,
            "target_status": None,
            "insert_index": None,
            "history_events": 0,
        }
        assert _titles(data["columns"], "ToDo") == ["T1"]
        assert (await client.get("/api/board/selection")).json()["selected_ids"] == []
        assert (await client.get("/api/board/events")).json()["events"] == []

    async def test_cancel(self, client: AsyncClient) -> None:
        t1 = await _add(client, "T1")
        await client.post("/api/board/drag/start", json={"active_id": t1})
        await client.post("/api/board/drag/over", json={"active_id": t1, "over_id": "placeholder:Done"})
        resp = await client.post("/api/board/drag/cancel")
        assert resp.json() == {"phase": "idle", "active_id": None, "projection": None, "placeholder": None}
        resp = await client.get("/api/board/drag")
        assert resp.json()["phase"] == "idle"

    async def test_start_unknown_task(self, client: AsyncClient) -> None:
        resp = await client.post("/api/board/drag/start", json={"active_id": "task-nope"})
        assert resp.status_code == 404
