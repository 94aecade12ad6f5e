"""FastAPI application: target ingress, feedback and status.

The lifespan starts the orchestrator (service checks, parking the robot)
and runs its control loop for the life of the server. If no orchestrator
was installed beforehand, a simulated cell is used.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gripflow.api.routes import analytics, execution, feedback, targets
from gripflow.config import load_config
from gripflow.execution.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

# Simulated trajectory durations (s) and suction delay for the mock cell.
MOCK_PLAN_DURATIONS = {"robot_rail": 1.0, "robot": 0.5}
MOCK_ATTACH_DELAY = 0.3


def build_mock_orchestrator() -> Orchestrator:
    """Orchestrator wired to a simulated cell, using the active config."""
    from gripflow.hardware.mock import MockCell

    config = load_config()
    durations = {
        config.rail.group_name: MOCK_PLAN_DURATIONS["robot_rail"],
        config.arm.group_name: MOCK_PLAN_DURATIONS["robot"],
    }
    cell = MockCell(config, plan_durations=durations, attach_delay=MOCK_ATTACH_DELAY)
    return cell.build_orchestrator(analytics_dir=execution.ANALYTICS_DIR)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    orchestrator = execution._orchestrator
    if orchestrator is None:
        logger.info("No orchestrator installed, starting simulated cell")
        orchestrator = build_mock_orchestrator()
        execution.set_orchestrator(orchestrator)

    await orchestrator.start()
    runner = asyncio.create_task(orchestrator.run())
    try:
        yield
    finally:
        orchestrator.shutdown()
        await runner


app = FastAPI(title="gripflow", version="0.1.0", lifespan=lifespan)
app.include_router(targets.router, prefix="/targets", tags=["targets"])
app.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
app.include_router(execution.router, prefix="/execution", tags=["execution"])
app.include_router(analytics.router, prefix="/analytics", tags=["analytics"])


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
