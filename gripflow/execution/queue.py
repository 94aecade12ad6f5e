"""FIFO buffer of incoming target descriptors.

Unbounded: when ingress outpaces the control loop, descriptors
accumulate. There is no backpressure towards the producer.
"""

from __future__ import annotations

import logging
from collections import deque

from gripflow.models import TargetDescriptor

logger = logging.getLogger(__name__)


class TargetQueue:
    """Strict FIFO; ``deque.append``/``popleft`` are safe across threads."""

    def __init__(self) -> None:
        self._items: deque[TargetDescriptor] = deque()
        self.received = 0

    def push(self, target: TargetDescriptor) -> int:
        """Append a target; returns the number now pending."""
        self._items.append(target)
        self.received += 1
        pending = len(self._items)
        logger.info("Received new target %s (%d pending)", target.id, pending)
        return pending

    def pop(self) -> TargetDescriptor | None:
        """Remove and return the oldest target, or None when empty."""
        try:
            return self._items.popleft()
        except IndexError:
            return None

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
