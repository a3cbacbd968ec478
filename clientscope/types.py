"""Enums shared across clientscope."""

from enum import StrEnum


class Role(StrEnum):
    CEO = "CEO"
    CFO = "CFO"
    ADMIN = "ADMIN"
    FRONTEND = "FRONTEND"
    BACKEND = "BACKEND"
    OUTREACH = "OUTREACH"
    DESIGNER = "DESIGNER"
    BOARD = "BOARD"
    ALUMNI = "ALUMNI"
    COMMUNITY = "COMMUNITY"
    CLIENT = "CLIENT"


class OrgRole(StrEnum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"


class ProjectStatus(StrEnum):
    LEAD = "LEAD"
    PLANNING = "PLANNING"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class InvoiceStatus(StrEnum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class LeadStatus(StrEnum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    CONVERTED = "CONVERTED"
    LOST = "LOST"


class ChangeRequestCategory(StrEnum):
    CONTENT = "CONTENT"
    BUG = "BUG"
    FEATURE = "FEATURE"
    DESIGN = "DESIGN"
    SEO = "SEO"
    SECURITY = "SECURITY"
    OTHER = "OTHER"


class ChangeRequestPriority(StrEnum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"
    EMERGENCY = "EMERGENCY"


class NotificationType(StrEnum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class NotificationEvent(StrEnum):
    TASK_COMPLETED = "task_completed"
    LEAD_CREATED = "lead_created"
    CHANGE_REQUEST_CREATED = "change_request_created"
    CHANGE_REQUEST_URGENT = "change_request_urgent"
    CLIENT_ACTIVITY = "client_activity"
