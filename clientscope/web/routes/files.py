"""Client file routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.guard import get_project_or_raise, get_scoped_or_raise, list_scoped
from clientscope.access.identity import Identity
from clientscope.models.api import FileResponse
from clientscope.models.database import ProjectFile
from clientscope.storage.database import get_engine
from clientscope.web.auth.rbac import get_identity

router = APIRouter(prefix="/api/client/files", tags=["files"])


@router.get("", response_model=list[FileResponse])
async def list_files(
    project_id: str | None = Query(default=None),
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> list[ProjectFile]:
    async with AsyncSession(engine) as session:
        filters = []
        if project_id:
            await get_project_or_raise(session, identity, project_id, fields=["id"])
            filters.append(col(ProjectFile.project_id) == project_id)
        return await list_scoped(
            session,
            identity,
            ProjectFile,
            *filters,
            order_by=(col(ProjectFile.created_at).desc(),),
        )


@router.get("/{file_id}", response_model=FileResponse)
async def get_file(
    file_id: str,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> ProjectFile:
    async with AsyncSession(engine) as session:
        return await get_scoped_or_raise(session, identity, ProjectFile, file_id)
