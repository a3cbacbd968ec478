"""Admin lead routes, gated by capability."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.identity import Identity
from clientscope.access.roles import Capability
from clientscope.audit.logger import record_activity
from clientscope.exceptions import AccessDenied
from clientscope.models.api import LeadCreate, LeadResponse
from clientscope.models.database import Lead, Project
from clientscope.notifications.fanout import NotificationFanout
from clientscope.storage.database import get_engine
from clientscope.web.auth.rbac import require_capability
from clientscope.web.dependencies import get_fanout

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin/leads", tags=["leads"])


@router.get("", response_model=list[LeadResponse])
async def list_leads(
    identity: Identity = Depends(require_capability(Capability.VIEW_ADMIN_RESOURCES)),
    engine: AsyncEngine = Depends(get_engine),
) -> list[Lead]:
    async with AsyncSession(engine) as session:
        result = await session.execute(select(Lead).order_by(col(Lead.created_at).desc()))
        return list(result.scalars().all())


@router.post("", status_code=201, response_model=LeadResponse)
async def create_lead(
    body: LeadCreate,
    request: Request,
    identity: Identity = Depends(require_capability(Capability.MANAGE_LEADS)),
    engine: AsyncEngine = Depends(get_engine),
    fanout: NotificationFanout = Depends(get_fanout),
) -> Lead:
    async with AsyncSession(engine) as session:
        lead = Lead(**body.model_dump())
        lead.email = lead.email.lower()
        session.add(lead)
        await session.commit()
        await session.refresh(lead)

    await record_activity(
        engine,
        request,
        identity,
        "lead.created",
        resource_type="lead",
        resource_id=lead.id,
        details={"source": lead.source},
    )
    await fanout.new_lead(
        lead_id=lead.id,
        name=lead.name,
        email=lead.email,
        company=lead.company,
        source=lead.source,
    )
    return lead


@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: str,
    request: Request,
    identity: Identity = Depends(require_capability(Capability.DELETE_RESOURCES)),
    engine: AsyncEngine = Depends(get_engine),
) -> dict[str, Any]:
    async with AsyncSession(engine) as session:
        lead = await session.get(Lead, lead_id)
        if lead is None:
            raise AccessDenied("Lead", lead_id)
        # Projects converted from the lead survive without the link
        await session.execute(
            update(Project).where(col(Project.lead_id) == lead_id).values(lead_id=None)
        )
        await session.delete(lead)
        await session.commit()

    await record_activity(
        engine,
        request,
        identity,
        "lead.deleted",
        resource_type="lead",
        resource_id=lead_id,
    )
    logger.info("lead_deleted", lead_id=lead_id)
    return {"deleted": True, "id": lead_id}
