"""Client change request routes."""

from __future__ import annotations

import math

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.guard import get_project_or_raise, list_scoped
from clientscope.access.identity import Identity
from clientscope.access.scope import get_access_context, scoped_projects
from clientscope.audit.logger import record_activity
from clientscope.exceptions import AccessDenied
from clientscope.models.api import ChangeRequestCreate, ChangeRequestResponse
from clientscope.models.database import (
    ChangeRequest,
    HourPack,
    MaintenancePlan,
    Project,
    _utc_now,
)
from clientscope.notifications.fanout import NotificationFanout
from clientscope.storage.database import get_engine
from clientscope.types import ChangeRequestPriority, ProjectStatus
from clientscope.web.auth.rbac import get_identity
from clientscope.web.dependencies import get_fanout

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/client/change-requests", tags=["change-requests"])

# Cents added on top of the hourly estimate
URGENCY_FEES: dict[str, int] = {
    ChangeRequestPriority.HIGH: 5000,
    ChangeRequestPriority.URGENT: 10000,
}

# Cents per hour billed beyond the plan's available hours
OVERAGE_RATE = 7500
# Estimates above this many hours wait for the client's sign-off
APPROVAL_THRESHOLD_HOURS = 2

UNLIMITED_HOURS = -1

_CLOSED_PROJECT_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)


def urgency_fee(priority: str) -> int:
    return URGENCY_FEES.get(priority, 0)


def overage_amount(estimated_hours: float | None, available_hours: float | None) -> int | None:
    """Cents owed for hours beyond ``available_hours``, or None when within them.

    ``available_hours`` of None means the plan is unlimited.
    """
    if available_hours is None or not estimated_hours or estimated_hours <= available_hours:
        return None
    return math.ceil((estimated_hours - available_hours) * OVERAGE_RATE)


def requires_client_approval(estimated_hours: float | None) -> bool:
    return estimated_hours is not None and estimated_hours > APPROVAL_THRESHOLD_HOURS


async def _available_hours(session: AsyncSession, project_id: str) -> float | None:
    """Support hours left on the project's active plan; None when unlimited.

    Included hours, rollover and unexpired active hour packs add up. A
    project without an active plan has none.
    """
    result = await session.execute(
        select(MaintenancePlan).where(
            col(MaintenancePlan.project_id) == project_id,
            col(MaintenancePlan.status) == "ACTIVE",
        )
    )
    plan = result.scalars().first()
    if plan is None:
        return 0
    if plan.support_hours_included == UNLIMITED_HOURS:
        return None

    now = _utc_now()
    packs = await session.execute(
        select(func.coalesce(func.sum(HourPack.hours_remaining), 0)).where(
            col(HourPack.plan_id) == plan.id,
            col(HourPack.is_active).is_(True),
            col(HourPack.hours_remaining) > 0,
            or_(col(HourPack.expires_at).is_(None), col(HourPack.expires_at) > now),
        )
    )
    pack_hours = float(packs.scalar_one())
    return plan.support_hours_included + plan.rollover_hours + pack_hours


async def _latest_active_project(session: AsyncSession, identity: Identity) -> Project:
    """Most recently updated open project in scope."""
    context = await get_access_context(session, identity)
    if context.is_empty:
        raise AccessDenied("Project")

    stmt = (
        scoped_projects(identity)
        .where(col(Project.status).not_in(_CLOSED_PROJECT_STATUSES))
        .order_by(col(Project.updated_at).desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    project = result.scalars().first()
    if project is None:
        raise AccessDenied("Project")
    return project


@router.get("", response_model=list[ChangeRequestResponse])
async def list_change_requests(
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> list[ChangeRequest]:
    async with AsyncSession(engine) as session:
        return await list_scoped(
            session,
            identity,
            ChangeRequest,
            order_by=(col(ChangeRequest.created_at).desc(),),
        )


@router.post("", status_code=201, response_model=ChangeRequestResponse)
async def create_change_request(
    body: ChangeRequestCreate,
    request: Request,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
    fanout: NotificationFanout = Depends(get_fanout),
) -> ChangeRequest:
    """File a change request against a project in scope.

    Without ``project_id`` the most recently updated open project is used.
    """
    async with AsyncSession(engine) as session:
        if body.project_id:
            project = await get_project_or_raise(session, identity, body.project_id)
        else:
            project = await _latest_active_project(session, identity)
        available = await _available_hours(session, project.id)
        overage = overage_amount(body.estimated_hours, available)

        change_request = ChangeRequest(
            project_id=project.id,
            requested_by=identity.user_id,
            title=body.title,
            description=body.description,
            category=body.category,
            priority=body.priority,
            estimated_hours=body.estimated_hours,
            urgency_fee=urgency_fee(body.priority),
            is_overage=overage is not None,
            overage_amount=overage,
            requires_client_approval=requires_client_approval(body.estimated_hours),
        )
        session.add(change_request)
        await session.commit()
        await session.refresh(change_request)

    await record_activity(
        engine,
        request,
        identity,
        "change_request.created",
        resource_type="change_request",
        resource_id=change_request.id,
        details={
            "project_id": change_request.project_id,
            "category": change_request.category,
            "priority": change_request.priority,
            "overage_amount": change_request.overage_amount,
        },
    )
    await fanout.new_change_request(
        change_request_id=change_request.id,
        project_id=change_request.project_id,
        description=f"{body.title}: {body.description}",
        client_name=identity.name or identity.email or "Client",
        priority=change_request.priority,
    )
    logger.info(
        "change_request_created",
        change_request_id=change_request.id,
        project_id=change_request.project_id,
        priority=change_request.priority,
    )
    return change_request
