"""API request/response schemas for ingress, feedback, state and analytics.

All use camelCase aliases for JSON serialization.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AttachmentFeedback(BaseModel):
    """Inbound attachment sensor sample."""

    model_config = ConfigDict(populate_by_name=True)

    attached: bool


class EnqueueResponse(BaseModel):
    """Acknowledgement for an accepted target (fire-and-forget)."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    target_id: str = Field(alias="targetId")
    pending: int = 0


class TaskResultState(BaseModel):
    """Outcome of the most recent task."""

    model_config = ConfigDict(populate_by_name=True)

    target_id: str = Field(alias="targetId")
    success: bool
    duration_ms: float = Field(0, alias="durationMs")
    failure: str | None = None
    error_message: str | None = Field(None, alias="errorMessage")
    completed_phases: list[str] = Field(default_factory=list, alias="completedPhases")
    degraded_phases: list[str] = Field(default_factory=list, alias="degradedPhases")
    rendezvous_wait: float | None = Field(None, alias="rendezvousWait")


class OrchestratorState(BaseModel):
    """Snapshot of the control loop."""

    model_config = ConfigDict(populate_by_name=True)

    busy: bool = False
    pending: int = 0
    current_target_id: str | None = Field(None, alias="currentTargetId")
    current_phase: str | None = Field(None, alias="currentPhase")
    attached: bool = False
    monitor: str | None = None
    tasks_processed: int = Field(0, alias="tasksProcessed")
    last_result: TaskResultState | None = Field(None, alias="lastResult")


class TaskRunEntry(BaseModel):
    """A single task result for metrics history."""

    model_config = ConfigDict(populate_by_name=True)

    target_id: str = Field("", alias="targetId")
    success: bool
    duration_ms: float = Field(alias="durationMs")
    failure: str | None = None
    timestamp: float


class TaskMetrics(BaseModel):
    """Aggregated task analytics."""

    model_config = ConfigDict(populate_by_name=True)

    success_rate: float = Field(0, alias="successRate")
    avg_duration_ms: float = Field(0, alias="avgDurationMs")
    total_tasks: int = Field(0, alias="totalTasks")
    failure_counts: dict[str, int] = Field(default_factory=dict, alias="failureCounts")
    recent_runs: list[TaskRunEntry] = Field(default_factory=list, alias="recentRuns")
