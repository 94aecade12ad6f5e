"""Orchestrator state routes.

Holds the module-level orchestrator singleton used by every route. The app
lifespan installs it via :func:`set_orchestrator`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException

from gripflow.api.schemas import OrchestratorState, TaskResultState
from gripflow.execution.orchestrator import Orchestrator
from gripflow.execution.types import TaskResult

logger = logging.getLogger(__name__)

router = APIRouter()

ANALYTICS_DIR = Path(__file__).resolve().parents[3] / "data" / "analytics"

# Module-level singleton: one orchestrator per process.
_orchestrator: Orchestrator | None = None


def set_orchestrator(orchestrator: Orchestrator | None) -> None:
    """Install (or clear) the orchestrator served by the API."""
    global _orchestrator  # noqa: PLW0603
    _orchestrator = orchestrator


def get_orchestrator() -> Orchestrator:
    """Return the active orchestrator.

    Raises:
        HTTPException: 503 if no orchestrator is running.
    """
    if _orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not running")
    return _orchestrator


def _result_state(result: TaskResult) -> TaskResultState:
    return TaskResultState(
        target_id=result.target_id,
        success=result.success,
        duration_ms=result.duration_ms,
        failure=result.failure,
        error_message=result.error_message,
        completed_phases=[p.value for p in result.completed_phases],
        degraded_phases=[p.value for p in result.degraded_phases],
        rendezvous_wait=result.rendezvous_wait,
    )


@router.get("/state")
async def get_execution_state() -> dict:
    """Return a snapshot of the control loop."""
    orch = get_orchestrator()
    state = OrchestratorState(
        busy=orch.busy,
        pending=len(orch.queue),
        current_target_id=orch.current_target,
        current_phase=orch.current_phase.value if orch.current_phase else None,
        attached=orch.attachment.attached,
        monitor=orch.monitor.active,
        tasks_processed=orch.tasks_processed,
        last_result=_result_state(orch.last_result) if orch.last_result else None,
    )
    return state.model_dump(by_alias=True)
