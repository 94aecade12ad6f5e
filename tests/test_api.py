"""Integration tests for the FastAPI routes.

Installs a fast simulated orchestrator before the app starts and redirects
ANALYTICS_DIR to tmp_path, isolating each test from real data on disk.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from gripflow.api.app import app
from gripflow.api.routes import execution
from gripflow.hardware.mock import MockCell


def _target_body(lead: float, target_id: str = "api-1") -> dict:
    def stamped(x: float, y: float, z: float, stamp: float = 0.0) -> dict:
        return {
            "pose": {
                "position": {"x": x, "y": y, "z": z},
                "orientation": {"x": 0.0, "y": 0.0, "z": 0.0, "w": 1.0},
            },
            "stamp": stamp,
            "frameId": "world",
        }

    return {
        "id": target_id,
        "approachPose": stamped(0.5, 0.4, 0.3),
        "pickPose": stamped(0.5, 0.4, 0.1, stamp=time.time() + lead),
        "retreatPose": stamped(0.5, 0.4, 0.3),
        "placePose": stamped(-0.6, 0.2, 0.25),
    }


def _wait_for_state(client: TestClient, predicate, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        state = client.get("/execution/state").json()
        if predicate(state) or time.monotonic() > deadline:
            return state
        time.sleep(0.02)


@pytest.fixture()
def client(
    cell: MockCell,
    analytics_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[TestClient]:
    """TestClient running the app lifespan around a fast simulated cell."""
    monkeypatch.setattr(execution, "ANALYTICS_DIR", analytics_dir)
    monkeypatch.setattr(
        execution, "_orchestrator", cell.build_orchestrator(analytics_dir=analytics_dir)
    )
    with TestClient(app) as c:
        yield c


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_initial_state(client: TestClient) -> None:
    state = client.get("/execution/state").json()
    assert state["busy"] is False
    assert state["pending"] == 0
    assert state["currentTargetId"] is None
    assert state["tasksProcessed"] == 0
    assert state["lastResult"] is None


def test_enqueue_and_process_target(client: TestClient) -> None:
    resp = client.post("/targets", json=_target_body(lead=0.3))
    assert resp.status_code == 202
    body = resp.json()
    assert body["targetId"] == "api-1"
    assert body["status"] == "ok"

    state = _wait_for_state(client, lambda s: s["tasksProcessed"] >= 1)

    assert state["tasksProcessed"] == 1
    result = state["lastResult"]
    assert result["targetId"] == "api-1"
    assert result["success"] is True
    assert result["completedPhases"] == ["approach", "pick", "retreat", "place"]

    metrics = client.get("/analytics/tasks").json()
    assert metrics["totalTasks"] == 1
    assert metrics["successRate"] == 1.0

    history = client.get("/analytics/tasks/history", params={"limit": 5}).json()
    assert [r["targetId"] for r in history] == ["api-1"]


def test_late_target_reports_failure(client: TestClient) -> None:
    client.post("/targets", json=_target_body(lead=-1.0, target_id="late"))

    state = _wait_for_state(client, lambda s: s["tasksProcessed"] >= 1)

    assert state["lastResult"]["success"] is False
    assert state["lastResult"]["failure"] == "TimingInfeasible"
    assert client.get("/analytics/tasks").json()["failureCounts"] == {"TimingInfeasible": 1}


def test_invalid_target_rejected(client: TestClient) -> None:
    resp = client.post("/targets", json={"approachPose": {}})
    assert resp.status_code == 422


def test_attachment_feedback(client: TestClient) -> None:
    resp = client.post("/feedback/attachment", json={"attached": True})
    assert resp.status_code == 200
    assert client.get("/execution/state").json()["attached"] is True

    client.post("/feedback/attachment", json={"attached": False})
    assert client.get("/execution/state").json()["attached"] is False


def test_no_orchestrator_returns_503(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(execution, "_orchestrator", None)
    # No lifespan: nothing installs an orchestrator
    c = TestClient(app)
    assert c.get("/execution/state").status_code == 503
    assert c.post("/feedback/attachment", json={"attached": True}).status_code == 503
