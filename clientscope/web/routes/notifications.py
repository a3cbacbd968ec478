"""Notification inbox routes for the signed-in user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from clientscope.access.identity import Identity
from clientscope.exceptions import Unauthenticated
from clientscope.models.api import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from clientscope.models.database import Notification
from clientscope.storage.repositories.notifications import NotificationRepository
from clientscope.web.auth.rbac import get_identity
from clientscope.web.dependencies import get_notification_repo

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _owner_id(identity: Identity) -> str:
    # Notifications are addressed to user rows; an email-only identity has no inbox
    if not identity.user_id:
        raise Unauthenticated("Identity has no user id")
    return identity.user_id


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    identity: Identity = Depends(get_identity),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> list[Notification]:
    return await repo.list_for_user(
        _owner_id(identity), unread_only=unread_only, limit=limit, offset=offset
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    identity: Identity = Depends(get_identity),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread=await repo.unread_count(_owner_id(identity)))


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    identity: Identity = Depends(get_identity),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await repo.mark_all_read(_owner_id(identity)))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    identity: Identity = Depends(get_identity),
    repo: NotificationRepository = Depends(get_notification_repo),
) -> Notification:
    return await repo.mark_read(_owner_id(identity), notification_id)
