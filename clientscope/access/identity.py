"""Caller identity and its resolution from session data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.exceptions import Unauthenticated
from clientscope.models.database import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    """Immutable caller reference carried through each request."""

    user_id: str | None
    email: str | None
    role: str | None = None
    name: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.user_id and not self.email


class IdentityResolver:
    """Turn session data into an :class:`Identity`.

    The user row is authoritative when one is found: sessions outlive role
    changes, and session ids and emails are not always keyed the same way
    as user rows.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def resolve(self, session_data: dict[str, Any] | None) -> Identity:
        if not session_data:
            raise Unauthenticated("No session")

        user_id = session_data.get("user_id") or None
        email = session_data.get("email") or None
        if not user_id and not email:
            raise Unauthenticated("Session carries no identity")

        user = await self._find_user(user_id, email)
        if user is None:
            return Identity(
                user_id=user_id,
                email=email,
                role=session_data.get("role"),
                name=session_data.get("name") or "",
            )
        if not user.is_active:
            logger.warning("identity_inactive_user", user_id=user.id)
            raise Unauthenticated("User inactive")
        return Identity(user_id=user.id, email=user.email, role=user.role, name=user.name)

    async def _find_user(self, user_id: str | None, email: str | None) -> User | None:
        async with AsyncSession(self._engine) as session:
            if user_id:
                user = await session.get(User, user_id)
                if user is not None:
                    return user
            if email:
                stmt = select(User).where(func.lower(col(User.email)) == email.lower())
                result = await session.execute(stmt)
                return result.scalars().first()
        return None
