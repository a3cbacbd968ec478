"""Client meeting request routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.guard import get_project_or_raise
from clientscope.access.identity import Identity
from clientscope.audit.logger import record_activity
from clientscope.models.api import MeetingRequestCreate, MeetingRequestResponse
from clientscope.models.database import MeetingRequest
from clientscope.notifications.fanout import NotificationFanout
from clientscope.storage.database import get_engine
from clientscope.web.auth.rbac import get_identity
from clientscope.web.dependencies import get_fanout

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/client/meetings", tags=["meetings"])


@router.post("", status_code=201, response_model=MeetingRequestResponse)
async def request_meeting(
    body: MeetingRequestCreate,
    request: Request,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
    fanout: NotificationFanout = Depends(get_fanout),
) -> MeetingRequest:
    async with AsyncSession(engine) as session:
        if body.project_id:
            await get_project_or_raise(session, identity, body.project_id, fields=["id"])

        meeting = MeetingRequest(
            project_id=body.project_id,
            requested_by=identity.user_id,
            title=body.title,
            preferred_at=body.preferred_at,
            notes=body.notes,
        )
        session.add(meeting)
        await session.commit()
        await session.refresh(meeting)

    await record_activity(
        engine,
        request,
        identity,
        "meeting.requested",
        resource_type="meeting_request",
        resource_id=meeting.id,
        details={"project_id": meeting.project_id},
    )
    await fanout.client_activity(
        actor=identity.name or identity.email or "A client",
        summary=f"requested a meeting: {meeting.title}",
        project_id=meeting.project_id,
    )
    return meeting
