"""API request/response schemas for FastAPI endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from clientscope.types import ChangeRequestCategory, ChangeRequestPriority, TaskStatus


class _FromORM(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    status: str = "ok"
    user_id: str
    role: str
    token: str


class IdentityResponse(BaseModel):
    user_id: str | None
    email: str | None
    role: str | None
    name: str = ""


# ---------------------------------------------------------------------------
# Projects and project-owned resources
# ---------------------------------------------------------------------------


class ProjectResponse(_FromORM):
    id: str
    organization_id: str
    name: str
    description: str | None = None
    status: str
    assignee_id: str | None = None
    created_at: datetime
    updated_at: datetime


class TaskResponse(_FromORM):
    id: str
    project_id: str
    title: str
    description: str | None = None
    status: str
    requires_upload: bool = False
    submission_notes: str | None = None
    file_url: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime


class TaskSummary(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    summary: TaskSummary


class TaskUpdateRequest(BaseModel):
    task_id: str
    status: TaskStatus
    submission_notes: str | None = None
    file_url: str | None = None


class FileResponse(_FromORM):
    id: str
    project_id: str
    name: str
    url: str
    mime_type: str | None = None
    size_bytes: int = 0
    created_at: datetime


class InvoiceResponse(_FromORM):
    id: str
    project_id: str | None
    number: str
    status: str
    total_cents: int
    due_date: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime


class MaintenancePlanResponse(_FromORM):
    id: str
    project_id: str
    tier: str
    status: str
    support_hours_included: int
    rollover_hours: int
    change_requests_included: int
    current_period_end: datetime | None = None


class MaintenancePlanUpdate(BaseModel):
    tier: str | None = None
    status: str | None = None
    support_hours_included: int | None = Field(default=None, ge=-1)
    rollover_hours: int | None = Field(default=None, ge=0)
    change_requests_included: int | None = Field(default=None, ge=0)


class ChangeRequestCreate(BaseModel):
    project_id: str | None = None
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    category: ChangeRequestCategory
    priority: ChangeRequestPriority
    estimated_hours: float | None = Field(default=None, ge=0)


class ChangeRequestResponse(_FromORM):
    id: str
    project_id: str
    title: str
    description: str
    category: str
    priority: str
    status: str
    estimated_hours: float | None = None
    urgency_fee: int
    is_overage: bool = False
    overage_amount: int | None = None
    requires_client_approval: bool = False
    created_at: datetime


class MeetingRequestCreate(BaseModel):
    project_id: str | None = None
    title: str = Field(min_length=1, max_length=200)
    preferred_at: datetime | None = None
    notes: str | None = None


class MeetingRequestResponse(_FromORM):
    id: str
    project_id: str | None
    title: str
    preferred_at: datetime | None = None
    status: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------


class LeadCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = None
    company: str | None = None
    message: str | None = None
    source: str = "manual"


class LeadResponse(_FromORM):
    id: str
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    source: str
    status: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class NotificationResponse(_FromORM):
    id: str
    project_id: str | None = None
    type: str
    title: str
    message: str
    read: bool
    read_at: datetime | None = None
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int
