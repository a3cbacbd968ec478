"""Access-scope predicates over projects.

A project is visible to an identity when the identity is a member of the
project's organization, matched by user id or by email. Elevated roles see
every project. Projects linked to a lead whose email matches the identity
are added only when lead-project access is switched on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import false, func, or_, true
from sqlmodel import col, select

from clientscope.access.roles import Capability, has_capability
from clientscope.config.settings import get_settings
from clientscope.models.database import Lead, OrganizationMember, Project, User

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import Select, SelectOfScalar

    from clientscope.access.identity import Identity

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AccessContext:
    """Materialised scope of one identity."""

    organization_ids: tuple[str, ...] = ()
    lead_project_ids: tuple[str, ...] = ()
    bypass: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.bypass and not self.organization_ids and not self.lead_project_ids


def _lead_access_enabled(include_lead_projects: bool | None) -> bool:
    if include_lead_projects is None:
        return get_settings().lead_project_access
    return include_lead_projects


def membership_org_ids(identity: Identity) -> SelectOfScalar[str] | None:
    """Subquery of organization ids the identity belongs to, or None."""
    conditions: list[ColumnElement[bool]] = []
    if identity.user_id:
        conditions.append(col(OrganizationMember.user_id) == identity.user_id)
    if identity.email:
        conditions.append(func.lower(col(User.email)) == identity.email.lower())
    if not conditions:
        return None
    return (
        select(OrganizationMember.organization_id)
        .join(User, col(User.id) == col(OrganizationMember.user_id))
        .where(or_(*conditions))
        .correlate(None)
    )


def lead_ids_for(identity: Identity) -> SelectOfScalar[str] | None:
    """Subquery of lead ids carrying the identity's email, or None."""
    if not identity.email:
        return None
    return (
        select(Lead.id)
        .where(func.lower(col(Lead.email)) == identity.email.lower())
        .correlate(None)
    )


def build_project_scope(
    identity: Identity,
    *,
    include_lead_projects: bool | None = None,
) -> ColumnElement[bool]:
    """Return a predicate over ``Project`` restricting rows to the identity's scope.

    Performs no I/O. The predicate is always valid SQL: an identity with
    no id and no email yields ``FALSE``, and an identity without
    memberships yields an ``IN`` over an empty subquery.
    """
    if has_capability(identity.role, Capability.BYPASS_CLIENT_SCOPE):
        return true()

    conditions: list[ColumnElement[bool]] = []
    org_ids = membership_org_ids(identity)
    if org_ids is not None:
        conditions.append(col(Project.organization_id).in_(org_ids))
    if _lead_access_enabled(include_lead_projects):
        lead_ids = lead_ids_for(identity)
        if lead_ids is not None:
            conditions.append(col(Project.lead_id).in_(lead_ids))

    if not conditions:
        return false()
    return or_(*conditions)


def scoped_projects(
    identity: Identity,
    *,
    include_lead_projects: bool | None = None,
) -> Select[tuple[Project]] | SelectOfScalar[Project]:
    """``SELECT`` of every project in the identity's scope."""
    return select(Project).where(
        build_project_scope(identity, include_lead_projects=include_lead_projects)
    )


async def get_access_context(
    session: AsyncSession,
    identity: Identity,
    *,
    include_lead_projects: bool | None = None,
) -> AccessContext:
    """Read the organization and lead-project ids an identity can reach."""
    if has_capability(identity.role, Capability.BYPASS_CLIENT_SCOPE):
        return AccessContext(bypass=True)

    organization_ids: tuple[str, ...] = ()
    org_stmt = membership_org_ids(identity)
    if org_stmt is not None:
        result = await session.execute(org_stmt.distinct())
        organization_ids = tuple(sorted(result.scalars().all()))

    lead_project_ids: tuple[str, ...] = ()
    lead_stmt = lead_ids_for(identity)
    if _lead_access_enabled(include_lead_projects) and lead_stmt is not None:
        result = await session.execute(
            select(Project.id).where(col(Project.lead_id).in_(lead_stmt))
        )
        lead_project_ids = tuple(sorted(result.scalars().all()))

    logger.debug(
        "access_context_resolved",
        user_id=identity.user_id,
        organizations=len(organization_ids),
        lead_projects=len(lead_project_ids),
    )
    return AccessContext(organization_ids=organization_ids, lead_project_ids=lead_project_ids)
