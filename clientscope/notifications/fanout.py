"""Notification fan-out for domain events.

Delivery is best effort and at most once. The triggering operation has
already committed when a fan-out runs, so every failure here is logged and
dropped rather than raised. A stronger guarantee needs an outbox table and
a retry worker, not a re-raise from these methods.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.roles import Capability, roles_with
from clientscope.exceptions import NotificationError
from clientscope.models.database import Notification, Project, User
from clientscope.types import ChangeRequestPriority, NotificationEvent, NotificationType

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)

EVENT_NOTIFICATION_TYPES: dict[NotificationEvent, NotificationType] = {
    NotificationEvent.TASK_COMPLETED: NotificationType.SUCCESS,
    NotificationEvent.LEAD_CREATED: NotificationType.INFO,
    NotificationEvent.CHANGE_REQUEST_CREATED: NotificationType.INFO,
    NotificationEvent.CHANGE_REQUEST_URGENT: NotificationType.WARNING,
    NotificationEvent.CLIENT_ACTIVITY: NotificationType.INFO,
}

URGENT_PRIORITIES = frozenset(
    {ChangeRequestPriority.HIGH, ChangeRequestPriority.URGENT, ChangeRequestPriority.EMERGENCY}
)

_MESSAGE_PREVIEW_CHARS = 100


def _preview(text: str) -> str:
    if len(text) <= _MESSAGE_PREVIEW_CHARS:
        return text
    return text[:_MESSAGE_PREVIEW_CHARS] + "..."


def _unique(user_ids: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(uid for uid in user_ids if uid))


class NotificationFanout:
    """Writes one notification row per recipient of a domain event."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    # -- events -------------------------------------------------------------

    async def task_completed(
        self,
        *,
        project_id: str,
        task_id: str,
        task_title: str,
        completed_by: str | None = None,
    ) -> int:
        """Notify the project's assignee that a client finished a task."""

        async def recipients() -> list[str]:
            assignee_id = await self._project_assignee(project_id)
            return [assignee_id] if assignee_id else []

        return await self._fan_out(
            NotificationEvent.TASK_COMPLETED,
            recipients,
            title="Task completed",
            message=f'{completed_by or "A client"} completed "{task_title}"',
            project_id=project_id,
            context={"task_id": task_id},
        )

    async def notify_project_admins(
        self,
        *,
        project_id: str,
        task_title: str,
        completed_by: str | None = None,
    ) -> int:
        """Broadcast a task completion to every admin-alert recipient."""
        return await self._fan_out(
            NotificationEvent.TASK_COMPLETED,
            self._admin_roster,
            title="Client task completed",
            message=f'{completed_by or "A client"} completed "{task_title}"',
            project_id=project_id,
        )

    async def new_lead(
        self,
        *,
        lead_id: str,
        name: str,
        email: str,
        company: str | None = None,
        source: str = "manual",
    ) -> int:
        who = f"{name} ({company})" if company else name
        return await self._fan_out(
            NotificationEvent.LEAD_CREATED,
            self._admin_roster,
            title="New lead",
            message=f"{who} <{email}> via {source}",
            context={"lead_id": lead_id},
        )

    async def new_change_request(
        self,
        *,
        change_request_id: str,
        project_id: str,
        description: str,
        client_name: str,
        priority: str,
    ) -> int:
        event = (
            NotificationEvent.CHANGE_REQUEST_URGENT
            if priority in URGENT_PRIORITIES
            else NotificationEvent.CHANGE_REQUEST_CREATED
        )
        return await self._fan_out(
            event,
            self._admin_roster,
            title=f"New change request ({priority})",
            message=f"{client_name}: {_preview(description)}",
            project_id=project_id,
            context={"change_request_id": change_request_id},
        )

    async def client_activity(
        self,
        *,
        actor: str,
        summary: str,
        project_id: str | None = None,
    ) -> int:
        return await self._fan_out(
            NotificationEvent.CLIENT_ACTIVITY,
            self._admin_roster,
            title="Client activity",
            message=f"{actor} {summary}",
            project_id=project_id,
        )

    # -- plumbing -----------------------------------------------------------

    async def _fan_out(
        self,
        event: NotificationEvent,
        resolve_recipients: Callable[[], Awaitable[list[str]]],
        *,
        title: str,
        message: str,
        project_id: str | None = None,
        context: dict[str, str] | None = None,
    ) -> int:
        log = logger.bind(
            notification_event=event.value,
            project_id=project_id,
            **(context or {}),
        )
        try:
            user_ids = _unique(await resolve_recipients())
            if not user_ids:
                log.info("notification_no_recipients")
                return 0
            notification_type = EVENT_NOTIFICATION_TYPES[event]
            rows = [
                Notification(
                    user_id=user_id,
                    project_id=project_id,
                    type=notification_type,
                    title=title,
                    message=message,
                )
                for user_id in user_ids
            ]
            await self._insert(rows)
        except Exception:
            log.exception("notification_fanout_failed")
            return 0
        log.info("notifications_created", count=len(rows))
        return len(rows)

    async def _insert(self, rows: list[Notification]) -> None:
        async with AsyncSession(self._engine) as session:
            session.add_all(rows)
            try:
                await session.commit()
            except Exception as exc:
                await session.rollback()
                raise NotificationError(f"Failed to write {len(rows)} notifications") from exc

    async def _project_assignee(self, project_id: str) -> str | None:
        async with AsyncSession(self._engine) as session:
            result = await session.execute(
                select(Project.assignee_id).where(col(Project.id) == project_id)
            )
            return result.scalars().first()

    async def _admin_roster(self) -> list[str]:
        async with AsyncSession(self._engine) as session:
            result = await session.execute(
                select(User.id)
                .where(
                    col(User.role).in_(roles_with(Capability.RECEIVE_ADMIN_ALERTS)),
                    col(User.is_active).is_(True),
                )
                .order_by(col(User.created_at))
            )
            return list(result.scalars().all())
