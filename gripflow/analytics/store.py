"""Filesystem-backed history of task outcomes.

Stores task results as a single JSON file under ``{root}/tasks.json`` and
computes aggregated metrics (success rate, average duration, failure
breakdown) on the fly.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import Counter
from pathlib import Path

from gripflow.api.schemas import TaskMetrics, TaskRunEntry
from gripflow.execution.types import TaskResult

logger = logging.getLogger(__name__)

# Maximum runs stored to prevent unbounded file growth.
_MAX_STORED_RUNS = 200


class TaskHistoryStore:
    """Task result persistence backed by a JSON file.

    Thread-safe via a lock.

    Args:
        root: Base directory for history data. Created on first write.
    """

    def __init__(self, root: Path) -> None:
        self._root = root
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._root / "tasks.json"

    def record_task_result(self, result: TaskResult) -> None:
        """Append a task result to the history file."""
        entry = {
            "targetId": result.target_id,
            "success": result.success,
            "durationMs": result.duration_ms,
            "failure": result.failure,
            "degradedPhases": [p.value for p in result.degraded_phases],
            "timestamp": time.time(),
        }

        with self._lock:
            data = self._load()
            runs = data.setdefault("runs", [])
            runs.append(entry)

            # Trim to cap
            if len(runs) > _MAX_STORED_RUNS:
                data["runs"] = runs[-_MAX_STORED_RUNS:]

            self._save(data)

        logger.debug(
            "Recorded task: target=%s success=%s duration=%.0fms",
            result.target_id,
            result.success,
            result.duration_ms,
        )

    def get_task_metrics(self) -> TaskMetrics:
        """Compute aggregated metrics over the stored history."""
        return self._compute_metrics(self._load().get("runs", []))

    def get_history(self, limit: int = 50) -> list[TaskRunEntry]:
        """Recent task runs, most recent last."""
        runs = self._load().get("runs", [])
        return [self._to_entry(r) for r in runs[-limit:]]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load(self) -> dict:
        """Load history JSON, returning empty dict if missing or corrupt."""
        if self.path.exists():
            try:
                return json.loads(self.path.read_text())
            except json.JSONDecodeError:
                logger.warning("Corrupt task history %s, resetting", self.path)
        return {}

    def _save(self, data: dict) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2) + "\n")

    @staticmethod
    def _to_entry(r: dict) -> TaskRunEntry:
        return TaskRunEntry(
            target_id=r.get("targetId", ""),
            success=r["success"],
            duration_ms=r["durationMs"],
            failure=r.get("failure"),
            timestamp=r["timestamp"],
        )

    @classmethod
    def _compute_metrics(cls, runs: list[dict]) -> TaskMetrics:
        """Compute aggregated metrics from a list of raw run dicts."""
        total = len(runs)
        successes = sum(1 for r in runs if r["success"])
        success_rate = successes / total if total > 0 else 0.0

        durations = [r["durationMs"] for r in runs if r["success"]]
        avg_duration = sum(durations) / len(durations) if durations else 0.0

        failures = Counter(r["failure"] for r in runs if not r["success"] and r.get("failure"))

        return TaskMetrics(
            success_rate=round(success_rate, 4),
            avg_duration_ms=round(avg_duration, 1),
            total_tasks=total,
            failure_counts=dict(failures),
            recent_runs=[cls._to_entry(r) for r in runs[-20:]],
        )
