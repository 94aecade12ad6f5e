"""Analytics routes for task outcome metrics.

Reads from the TaskHistoryStore to return computed metrics.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query

from gripflow.analytics.store import TaskHistoryStore
from gripflow.api.routes import execution
from gripflow.api.schemas import TaskMetrics, TaskRunEntry

logger = logging.getLogger(__name__)

router = APIRouter()


def _store() -> TaskHistoryStore:
    return TaskHistoryStore(root=execution.ANALYTICS_DIR)


@router.get("/tasks", response_model=TaskMetrics)
async def get_task_metrics() -> TaskMetrics:
    """Aggregated success rate, durations and failure breakdown."""
    return _store().get_task_metrics()


@router.get("/tasks/history", response_model=list[TaskRunEntry])
async def get_task_history(limit: int = Query(50, ge=1, le=200)) -> list[TaskRunEntry]:
    """Most recent task runs, oldest first."""
    return _store().get_history(limit=limit)
