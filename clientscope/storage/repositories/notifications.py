"""Notification inbox repository.

Read state only moves forward: nothing in this module sets ``read`` back
to ``False``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.exceptions import AccessDenied
from clientscope.models.database import Notification, _utc_now

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)


class NotificationRepository:
    """Per-recipient view over the notifications table."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        async with AsyncSession(self._engine) as session:
            stmt = select(Notification).where(col(Notification.user_id) == user_id)
            if unread_only:
                stmt = stmt.where(col(Notification.read).is_(False))
            stmt = (
                stmt.order_by(col(Notification.created_at).desc(), col(Notification.id))
                .limit(limit)
                .offset(offset)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def unread_count(self, user_id: str) -> int:
        async with AsyncSession(self._engine) as session:
            stmt = select(func.count()).select_from(Notification).where(
                col(Notification.user_id) == user_id,
                col(Notification.read).is_(False),
            )
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def mark_read(self, user_id: str, notification_id: str) -> Notification:
        """Mark one of the user's notifications read.

        The write only matches an unread row, so an already-read
        notification keeps its first ``read_at`` even under concurrent
        calls. Another user's notification is reported as not found.
        """
        async with AsyncSession(self._engine) as session:
            stmt = (
                update(Notification)
                .where(
                    col(Notification.id) == notification_id,
                    col(Notification.user_id) == user_id,
                    col(Notification.read).is_(False),
                )
                .values(read=True, read_at=_utc_now())
            )
            result = await session.execute(stmt)
            changed = result.rowcount or 0
            await session.commit()

            lookup = select(Notification).where(
                col(Notification.id) == notification_id,
                col(Notification.user_id) == user_id,
            )
            notification = (await session.execute(lookup)).scalars().first()
            if notification is None:
                raise AccessDenied("Notification", notification_id)
            if changed:
                logger.info("notification_read", notification_id=notification_id, user_id=user_id)
            return notification

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of the user read; return how many changed."""
        async with AsyncSession(self._engine) as session:
            stmt = (
                update(Notification)
                .where(
                    col(Notification.user_id) == user_id,
                    col(Notification.read).is_(False),
                )
                .values(read=True, read_at=_utc_now())
            )
            result = await session.execute(stmt)
            await session.commit()
            count = result.rowcount or 0
            logger.info("notifications_read_all", user_id=user_id, count=count)
            return count
