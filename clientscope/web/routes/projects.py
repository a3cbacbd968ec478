"""Client project routes, scoped to the caller's organizations."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.guard import get_project_or_raise
from clientscope.access.identity import Identity
from clientscope.access.scope import scoped_projects
from clientscope.audit.logger import record_activity
from clientscope.models.api import ProjectResponse
from clientscope.models.database import (
    ChangeRequest,
    ClientTask,
    HourPack,
    Invoice,
    MaintenancePlan,
    MeetingRequest,
    Project,
    ProjectFile,
)
from clientscope.storage.database import get_engine
from clientscope.web.auth.rbac import get_identity

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/client/projects", tags=["projects"])

# Rows removed together with their project
_OWNED_MODELS = (ProjectFile, ClientTask, ChangeRequest, MaintenancePlan, MeetingRequest)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> list[Project]:
    async with AsyncSession(engine) as session:
        stmt = scoped_projects(identity).order_by(col(Project.updated_at).desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> Project:
    async with AsyncSession(engine) as session:
        return await get_project_or_raise(session, identity, project_id)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    request: Request,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Delete a project with its files, tasks, change requests and plan.

    Invoices are kept for bookkeeping and lose their project link.
    """
    async with AsyncSession(engine) as session:
        project = await get_project_or_raise(session, identity, project_id)
        project_name = project.name

        plan_ids = select(col(MaintenancePlan.id)).where(
            col(MaintenancePlan.project_id) == project_id
        )
        await session.execute(delete(HourPack).where(col(HourPack.plan_id).in_(plan_ids)))
        for model in _OWNED_MODELS:
            await session.execute(delete(model).where(col(model.project_id) == project_id))
        result = await session.execute(
            update(Invoice).where(col(Invoice.project_id) == project_id).values(project_id=None)
        )
        unlinked = result.rowcount or 0
        await session.delete(project)
        await session.commit()

    await record_activity(
        engine,
        request,
        identity,
        "project.deleted",
        resource_type="project",
        resource_id=project_id,
        details={"name": project_name, "invoices_unlinked": unlinked},
    )
    logger.info("project_deleted", project_id=project_id, invoices_unlinked=unlinked)
    return {"deleted": True, "id": project_id}
