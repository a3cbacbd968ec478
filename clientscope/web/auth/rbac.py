"""Identity and capability dependencies for requests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from clientscope.access.identity import Identity, IdentityResolver
from clientscope.access.roles import Capability, has_capability
from clientscope.exceptions import Forbidden, Unauthenticated
from clientscope.storage.database import get_engine
from clientscope.web.auth.session import get_session_auth, session_token

logger = structlog.get_logger(__name__)


async def get_identity(
    request: Request,
    engine: AsyncEngine = Depends(get_engine),
) -> Identity:
    """Resolve the caller's identity from the session; 401 when there is none."""
    session_data = get_session_auth().validate_session(session_token(request))
    if session_data is None:
        raise Unauthenticated("Missing or expired session")
    identity = await IdentityResolver(engine).resolve(session_data)
    structlog.contextvars.bind_contextvars(user_id=identity.user_id)
    return identity


def require_capability(capability: Capability) -> Callable[..., Awaitable[Identity]]:
    """Build a dependency that admits only roles holding ``capability``."""

    async def _require(identity: Identity = Depends(get_identity)) -> Identity:
        if not has_capability(identity.role, capability):
            logger.warning(
                "capability_denied",
                capability=capability.value,
                role=identity.role,
                user_id=identity.user_id,
            )
            raise Forbidden(capability.value)
        return identity

    return _require
