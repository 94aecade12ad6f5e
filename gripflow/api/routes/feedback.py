"""Attachment feedback route (sensor → shared attachment state)."""

from __future__ import annotations

from fastapi import APIRouter

from gripflow.api.routes.execution import get_orchestrator
from gripflow.api.schemas import AttachmentFeedback

router = APIRouter()


@router.post("/attachment")
async def post_attachment(feedback: AttachmentFeedback) -> dict[str, str]:
    """Record an attachment sensor sample."""
    get_orchestrator().attachment.update(feedback.attached)
    return {"status": "ok"}
