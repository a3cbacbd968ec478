"""Maintenance plan routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.guard import get_scoped_or_raise
from clientscope.access.identity import Identity
from clientscope.access.roles import Capability
from clientscope.audit.logger import record_activity
from clientscope.models.api import MaintenancePlanResponse, MaintenancePlanUpdate
from clientscope.models.database import MaintenancePlan, _utc_now
from clientscope.storage.database import get_engine
from clientscope.web.auth.rbac import get_identity, require_capability

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/client/maintenance-plans", tags=["maintenance"])


@router.get("/{plan_id}", response_model=MaintenancePlanResponse)
async def get_plan(
    plan_id: str,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> MaintenancePlan:
    async with AsyncSession(engine) as session:
        return await get_scoped_or_raise(session, identity, MaintenancePlan, plan_id)


@router.patch("/{plan_id}", response_model=MaintenancePlanResponse)
async def update_plan(
    plan_id: str,
    body: MaintenancePlanUpdate,
    request: Request,
    identity: Identity = Depends(require_capability(Capability.MANAGE_BILLING)),
    engine: AsyncEngine = Depends(get_engine),
) -> MaintenancePlan:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    async with AsyncSession(engine) as session:
        plan = await get_scoped_or_raise(session, identity, MaintenancePlan, plan_id)
        for field, value in changes.items():
            setattr(plan, field, value)
        plan.updated_at = _utc_now()
        session.add(plan)
        await session.commit()
        await session.refresh(plan)

    await record_activity(
        engine,
        request,
        identity,
        "maintenance_plan.updated",
        resource_type="maintenance_plan",
        resource_id=plan_id,
        details=changes,
    )
    logger.info("maintenance_plan_updated", plan_id=plan_id, fields=sorted(changes))
    return plan
