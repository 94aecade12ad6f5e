"""Execution layer type definitions.

Shared types used by the orchestrator, the analytics store and the API.
Defined separately to avoid circular imports between modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Phase(str, Enum):
    """Task phases, in execution order."""

    APPROACH = "approach"
    PICK = "pick"
    RETREAT = "retreat"
    PLACE = "place"


@dataclass
class TaskResult:
    """Outcome of processing one target.

    Attributes:
        target_id: Identifier of the processed target.
        success: Whether all four phases completed.
        duration_ms: Wall time from dequeue to end of cleanup.
        failure: Name of the error class that ended the task, if any.
        error_message: Description of the failure, if any.
        completed_phases: Phases that ran to the end (possibly degraded).
        degraded_phases: Phases whose execution reported non-success.
        rendezvous_wait: Seconds waited for the object before picking.
    """

    target_id: str
    success: bool
    duration_ms: float = 0.0
    failure: str | None = None
    error_message: str | None = None
    completed_phases: list[Phase] = field(default_factory=list)
    degraded_phases: list[Phase] = field(default_factory=list)
    rendezvous_wait: float | None = None
