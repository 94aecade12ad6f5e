"""Attachment state and contact monitoring.

:class:`AttachmentState` is the one cell shared between the feedback
ingestion path (single writer) and the orchestrator (readers). The
:class:`ContactMonitor` polls it from lightweight asyncio tasks:

- the *acquisition* monitor runs during the pick trajectory and fires once
  the object attaches, so the arm can stop on first contact;
- the *retention* monitor runs from confirmed attachment through retreat
  and fires if the object is dropped.

At most one monitor task exists at a time; installing one stops the other.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

MonitorCallback = Callable[[], Awaitable[None]]

ACQUISITION = "acquisition"
RETENTION = "retention"


class AttachmentState:
    """Boolean "object attached" cell updated by the feedback channel.

    Plain attribute reads and writes are atomic under the interpreter, and
    no invariant spans this flag and any other state, so no lock is held.
    """

    def __init__(self, attached: bool = False) -> None:
        self._attached = attached
        self._updated_at: float | None = None

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def updated_at(self) -> float | None:
        """Monotonic time of the last update, or None if never updated."""
        return self._updated_at

    def update(self, attached: bool) -> None:
        """Record a feedback sample. Only the feedback path calls this."""
        if attached != self._attached:
            logger.debug("Attachment changed: %s", attached)
        self._attached = attached
        self._updated_at = time.monotonic()


class ContactMonitor:
    """Polling monitors over an :class:`AttachmentState`.

    Args:
        state: Shared attachment cell.
        acquisition_period: Poll period of the acquisition monitor (s).
        retention_period: Poll period of the retention monitor (s).
    """

    def __init__(
        self,
        state: AttachmentState,
        acquisition_period: float = 0.1,
        retention_period: float = 0.2,
    ) -> None:
        self._state = state
        self._periods = {ACQUISITION: acquisition_period, RETENTION: retention_period}
        self._task: asyncio.Task | None = None
        self._kind: str | None = None

    @property
    def active(self) -> str | None:
        """Name of the running monitor, or None."""
        if self._task is None or self._task.done():
            return None
        return self._kind

    async def start_acquisition(self, on_attached: MonitorCallback) -> None:
        """Fire *on_attached* once the object attaches, then halt."""
        await self._install(ACQUISITION, expect=True, callback=on_attached)

    async def start_retention(self, on_lost: MonitorCallback) -> None:
        """Fire *on_lost* once the object detaches, then halt."""
        await self._install(RETENTION, expect=False, callback=on_lost)

    async def stop(self) -> None:
        """Stop the active monitor, if any. Safe to call repeatedly."""
        task, self._task, self._kind = self._task, None, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def wait_for_attachment(self, timeout: float = 2.0, poll_period: float = 0.01) -> bool:
        """Block until attached or *timeout* seconds elapse.

        Returns:
            True if the object attached in time.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            if self._state.attached:
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(poll_period)

    async def _install(self, kind: str, *, expect: bool, callback: MonitorCallback) -> None:
        await self.stop()
        self._kind = kind
        self._task = asyncio.create_task(
            self._poll(kind, self._periods[kind], expect, callback),
            name=f"contact-{kind}",
        )
        logger.debug("Installed %s monitor", kind)

    async def _poll(
        self,
        kind: str,
        period: float,
        expect: bool,
        callback: MonitorCallback,
    ) -> None:
        while True:
            await asyncio.sleep(period)
            if self._state.attached == expect:
                break
        if expect:
            logger.info("Object attached")
        else:
            logger.error("Object became detached")
        try:
            await callback()
        except Exception:
            logger.exception("%s monitor callback failed", kind.capitalize())
