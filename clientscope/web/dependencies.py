"""FastAPI dependency providers for services bound to the engine."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine

from clientscope.notifications.fanout import NotificationFanout
from clientscope.storage.database import get_engine
from clientscope.storage.repositories.notifications import NotificationRepository
from clientscope.storage.repositories.users import DatabaseUserRepository


def get_fanout(engine: AsyncEngine = Depends(get_engine)) -> NotificationFanout:
    return NotificationFanout(engine)


def get_notification_repo(engine: AsyncEngine = Depends(get_engine)) -> NotificationRepository:
    return NotificationRepository(engine)


def get_user_repo(engine: AsyncEngine = Depends(get_engine)) -> DatabaseUserRepository:
    return DatabaseUserRepository(engine)
