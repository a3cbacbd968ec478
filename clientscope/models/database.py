"""SQLModel database table models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from clientscope.types import (
    ChangeRequestPriority,
    InvoiceStatus,
    LeadStatus,
    NotificationType,
    OrgRole,
    ProjectStatus,
    Role,
    TaskStatus,
)


def _utc_now() -> datetime:
    """Return current UTC time as naive datetime for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Tenancy
# ---------------------------------------------------------------------------


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str = ""
    role: str = Field(default=Role.CLIENT)
    password_hash: str | None = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class Organization(SQLModel, table=True):
    __tablename__ = "organizations"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class OrganizationMember(SQLModel, table=True):
    __tablename__ = "organization_members"
    __table_args__ = (UniqueConstraint("organization_id", "user_id"),)

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    role: str = Field(default=OrgRole.MEMBER)
    created_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Sales pipeline
# ---------------------------------------------------------------------------


class Lead(SQLModel, table=True):
    __tablename__ = "leads"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    name: str
    email: str = Field(index=True)
    phone: str | None = None
    company: str | None = None
    message: str | None = None
    source: str = Field(default="manual")
    status: str = Field(default=LeadStatus.NEW)
    organization_id: str | None = Field(default=None, foreign_key="organizations.id")
    created_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Projects and project-owned resources
# ---------------------------------------------------------------------------


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    lead_id: str | None = Field(default=None, foreign_key="leads.id", index=True)
    assignee_id: str | None = Field(default=None, foreign_key="users.id")
    name: str
    description: str | None = None
    status: str = Field(default=ProjectStatus.PLANNING)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class ClientTask(SQLModel, table=True):
    __tablename__ = "client_tasks"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    title: str
    description: str | None = None
    status: str = Field(default=TaskStatus.PENDING)
    requires_upload: bool = Field(default=False)
    submission_notes: str | None = None
    file_url: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utc_now)


class ProjectFile(SQLModel, table=True):
    __tablename__ = "project_files"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    name: str
    url: str
    mime_type: str | None = None
    size_bytes: int = Field(default=0)
    uploaded_by: str | None = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=_utc_now)


class Invoice(SQLModel, table=True):
    __tablename__ = "invoices"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    # Nullable: deleting a project unlinks its invoices instead of deleting them
    project_id: str | None = Field(default=None, foreign_key="projects.id", index=True)
    number: str
    status: str = Field(default=InvoiceStatus.DRAFT)
    total_cents: int = Field(default=0)
    due_date: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utc_now)


class MaintenancePlan(SQLModel, table=True):
    __tablename__ = "maintenance_plans"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", unique=True, index=True)
    tier: str = Field(default="ESSENTIALS")
    status: str = Field(default="ACTIVE")
    support_hours_included: int = Field(default=0)
    rollover_hours: int = Field(default=0)
    change_requests_included: int = Field(default=3)
    current_period_end: datetime | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class HourPack(SQLModel, table=True):
    """Prepaid support hours added on top of a maintenance plan."""

    __tablename__ = "hour_packs"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    plan_id: str = Field(foreign_key="maintenance_plans.id", index=True)
    hours: float
    hours_remaining: float
    is_active: bool = Field(default=True)
    expires_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utc_now)


class ChangeRequest(SQLModel, table=True):
    __tablename__ = "change_requests"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    project_id: str = Field(foreign_key="projects.id", index=True)
    requested_by: str | None = Field(default=None, foreign_key="users.id")
    title: str
    description: str
    category: str
    priority: str = Field(default=ChangeRequestPriority.NORMAL)
    status: str = Field(default="pending")
    estimated_hours: float | None = None
    urgency_fee: int = Field(default=0)  # cents
    is_overage: bool = Field(default=False)
    overage_amount: int | None = None  # cents
    requires_client_approval: bool = Field(default=False)
    created_at: datetime = Field(default_factory=_utc_now)


class MeetingRequest(SQLModel, table=True):
    __tablename__ = "meeting_requests"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    project_id: str | None = Field(default=None, foreign_key="projects.id", index=True)
    requested_by: str | None = Field(default=None, foreign_key="users.id", index=True)
    title: str
    preferred_at: datetime | None = None
    notes: str | None = None
    status: str = Field(default="pending")
    created_at: datetime = Field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Notifications and activity
# ---------------------------------------------------------------------------


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    project_id: str | None = Field(default=None, index=True)
    type: str = Field(default=NotificationType.INFO)
    title: str
    message: str
    read: bool = Field(default=False, index=True)
    read_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utc_now)


class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_logs"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    user_id: str = Field(index=True)
    action: str = Field(index=True)
    resource_type: str = ""
    resource_id: str = ""
    details_json: str = "{}"
    ip_address: str = ""
    request_id: str = ""
    created_at: datetime = Field(default_factory=_utc_now)
