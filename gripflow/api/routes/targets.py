"""Target ingress route.

Fire-and-forget: the producer gets an acknowledgement with the queue depth,
never the task outcome.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from gripflow.api.routes.execution import get_orchestrator
from gripflow.api.schemas import EnqueueResponse
from gripflow.models import TargetDescriptor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=202)
async def enqueue_target(target: TargetDescriptor) -> dict:
    """Append a target descriptor to the queue."""
    pending = get_orchestrator().submit(target)
    return EnqueueResponse(target_id=target.id, pending=pending).model_dump(by_alias=True)
