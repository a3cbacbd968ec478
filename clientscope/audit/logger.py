"""Activity log: append-only record of privileged actions.

Entries are written through a dedicated session, independent of the
transaction of the route that triggered them. Details are stored as JSON
with credential-looking keys removed and capped at 10KB.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.models.database import ActivityLog

if TYPE_CHECKING:
    from fastapi import Request
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clientscope.access.identity import Identity

logger = structlog.get_logger(__name__)

# A details key containing any of these fragments is dropped
_REDACTED_FRAGMENTS = (
    "password",
    "secret",
    "token",
    "authorization",
    "cookie",
    "apikey",
    "api_key",
    "card",
)

_DETAILS_LIMIT = 10 * 1024


def _is_redacted(key: str) -> bool:
    lowered = key.lower()
    return any(fragment in lowered for fragment in _REDACTED_FRAGMENTS)


def _sanitize_details(details: dict[str, Any]) -> str:
    """Encode ``details`` as JSON without credential-looking keys, capped in size."""
    kept = {key: value for key, value in details.items() if not _is_redacted(key)}
    return json.dumps(kept, default=str)[:_DETAILS_LIMIT]


class ActivityLogger:
    """Writes ``ActivityLog`` rows; a failed write is logged, never raised."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def log(self, *, user_id: str, action: str, **fields: Any) -> None:
        details = fields.pop("details", None) or {}
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            details_json=_sanitize_details(details),
            **fields,
        )
        try:
            async with AsyncSession(self._engine) as session:
                session.add(entry)
                await session.commit()
        except Exception:
            logger.exception("activity_log_failed", action=action, user_id=user_id)


async def record_activity(
    engine: AsyncEngine,
    request: Request,
    identity: Identity,
    action: str,
    *,
    resource_type: str = "",
    resource_id: str = "",
    details: dict[str, Any] | None = None,
) -> None:
    """Record ``action`` by ``identity`` with the caller address and bound request id."""
    bound = structlog.contextvars.get_contextvars()
    await ActivityLogger(engine).log(
        user_id=identity.user_id or identity.email or "",
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
        ip_address=request.client.host if request.client else "",
        request_id=str(bound.get("request_id", "")),
    )
