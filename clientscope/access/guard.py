"""Resource guards: scoped single-row lookups that fail closed."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from sqlalchemy.orm import load_only
from sqlmodel import SQLModel, col, select

from clientscope.access.scope import build_project_scope
from clientscope.exceptions import AccessDenied
from clientscope.models.database import (
    ChangeRequest,
    ClientTask,
    Invoice,
    MaintenancePlan,
    MeetingRequest,
    Project,
    ProjectFile,
)

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from clientscope.access.identity import Identity

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)

_RESOURCE_LABELS: dict[type[SQLModel], str] = {
    Project: "Project",
    ClientTask: "Task",
    ProjectFile: "File",
    Invoice: "Invoice",
    MaintenancePlan: "Maintenance plan",
    ChangeRequest: "Change request",
    MeetingRequest: "Meeting request",
}


def resource_label(model: type[SQLModel]) -> str:
    return _RESOURCE_LABELS.get(model, model.__name__)


def _load_only(model: type[SQLModel], fields: Sequence[str]) -> Any:
    table_columns = model.__table__.c  # type: ignore[attr-defined]
    unknown = [name for name in fields if name not in table_columns]
    if unknown:
        msg = f"Unknown fields for {model.__name__}: {', '.join(unknown)}"
        raise ValueError(msg)
    return load_only(*(getattr(model, name) for name in fields))


async def get_project_or_raise(
    session: AsyncSession,
    identity: Identity,
    project_id: str,
    *,
    fields: Sequence[str] | None = None,
    include_lead_projects: bool | None = None,
) -> Project:
    """Fetch one project inside the identity's scope.

    Raises AccessDenied when nothing matches, whether the project is
    missing or belongs to someone else.
    """
    stmt = select(Project).where(
        col(Project.id) == project_id,
        build_project_scope(identity, include_lead_projects=include_lead_projects),
    )
    if fields:
        stmt = stmt.options(_load_only(Project, fields))

    result = await session.execute(stmt)
    project = result.scalars().first()
    if project is None:
        logger.info(
            "access_denied",
            resource="Project",
            resource_id=project_id,
            user_id=identity.user_id,
        )
        raise AccessDenied("Project", project_id)
    return project


async def get_scoped_or_raise(
    session: AsyncSession,
    identity: Identity,
    model: type[ModelT],
    resource_id: str,
    *,
    fields: Sequence[str] | None = None,
    include_lead_projects: bool | None = None,
) -> ModelT:
    """Fetch a project-owned resource whose project is in scope.

    ``model`` must carry a ``project_id`` column. The resource and its
    project are matched in one statement.
    """
    label = resource_label(model)
    stmt = (
        select(model)
        .join(Project, col(Project.id) == col(model.project_id))  # type: ignore[attr-defined]
        .where(
            col(model.id) == resource_id,  # type: ignore[attr-defined]
            build_project_scope(identity, include_lead_projects=include_lead_projects),
        )
    )
    if fields:
        stmt = stmt.options(_load_only(model, fields))

    result = await session.execute(stmt)
    resource = result.scalars().first()
    if resource is None:
        logger.info(
            "access_denied",
            resource=label,
            resource_id=resource_id,
            user_id=identity.user_id,
        )
        raise AccessDenied(label, resource_id)
    return resource


async def list_scoped(
    session: AsyncSession,
    identity: Identity,
    model: type[ModelT],
    *filters: Any,
    order_by: Sequence[Any] = (),
    include_lead_projects: bool | None = None,
) -> list[ModelT]:
    """List project-owned resources across every project in scope."""
    stmt = (
        select(model)
        .join(Project, col(Project.id) == col(model.project_id))  # type: ignore[attr-defined]
        .where(build_project_scope(identity, include_lead_projects=include_lead_projects), *filters)
    )
    if order_by:
        stmt = stmt.order_by(*order_by)
    result = await session.execute(stmt)
    return list(result.scalars().all())
