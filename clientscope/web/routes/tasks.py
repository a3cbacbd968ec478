"""Client task routes: list with summary, and status updates."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.guard import get_scoped_or_raise, list_scoped
from clientscope.access.identity import Identity
from clientscope.access.scope import get_access_context
from clientscope.audit.logger import record_activity
from clientscope.config.settings import get_settings
from clientscope.models.api import (
    TaskListResponse,
    TaskResponse,
    TaskSummary,
    TaskUpdateRequest,
)
from clientscope.models.database import ClientTask, Project, _utc_now
from clientscope.notifications.fanout import NotificationFanout
from clientscope.storage.database import get_engine
from clientscope.types import TaskStatus
from clientscope.web.auth.rbac import get_identity
from clientscope.web.dependencies import get_fanout

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/client/tasks", tags=["tasks"])


def _summarize(tasks: list[ClientTask]) -> TaskSummary:
    summary = TaskSummary(total=len(tasks))
    for task in tasks:
        if task.status == TaskStatus.PENDING:
            summary.pending += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            summary.in_progress += 1
        elif task.status == TaskStatus.COMPLETED:
            summary.completed += 1
    return summary


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None),
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
) -> TaskListResponse:
    async with AsyncSession(engine) as session:
        context = await get_access_context(session, identity)
        if context.is_empty:
            return TaskListResponse(tasks=[], summary=TaskSummary())

        filters = [col(ClientTask.status) == status] if status else []
        tasks = await list_scoped(
            session,
            identity,
            ClientTask,
            *filters,
            order_by=(col(ClientTask.due_date).asc(), col(ClientTask.created_at).desc()),
        )

    return TaskListResponse(
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        summary=_summarize(tasks),
    )


@router.patch("", response_model=TaskResponse)
async def update_task(
    body: TaskUpdateRequest,
    request: Request,
    identity: Identity = Depends(get_identity),
    engine: AsyncEngine = Depends(get_engine),
    fanout: NotificationFanout = Depends(get_fanout),
) -> ClientTask:
    """Update a task's status and submission.

    Completing a task stamps ``completed_at`` and notifies the project's
    assignee once the change is committed.
    """
    async with AsyncSession(engine) as session:
        task = await get_scoped_or_raise(session, identity, ClientTask, body.task_id)
        was_completed = task.status == TaskStatus.COMPLETED

        task.status = body.status
        if body.submission_notes is not None:
            task.submission_notes = body.submission_notes
        if body.file_url is not None:
            task.file_url = body.file_url
        if body.status == TaskStatus.COMPLETED:
            task.completed_at = _utc_now()
        else:
            task.completed_at = None

        project = await session.get(Project, task.project_id)
        if project is not None:
            project.updated_at = _utc_now()
            session.add(project)
        session.add(task)
        await session.commit()
        await session.refresh(task)

    await record_activity(
        engine,
        request,
        identity,
        "task.updated",
        resource_type="task",
        resource_id=task.id,
        details={"status": task.status, "project_id": task.project_id},
    )

    if task.status == TaskStatus.COMPLETED and not was_completed:
        completed_by = identity.name or identity.email
        await fanout.task_completed(
            project_id=task.project_id,
            task_id=task.id,
            task_title=task.title,
            completed_by=completed_by,
        )
        if get_settings().broadcast_task_completion:
            await fanout.notify_project_admins(
                project_id=task.project_id,
                task_title=task.title,
                completed_by=completed_by,
            )

    return task
