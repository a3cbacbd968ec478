"""User lookup and password login.

Users, organizations and memberships are provisioned by onboarding flows
elsewhere; this repository only reads them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.passwords import verify_password
from clientscope.models.database import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)


class DatabaseUserRepository:
    """Active users looked up by email."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_by_email(self, email: str) -> User | None:
        async with AsyncSession(self._engine) as session:
            stmt = select(User).where(
                func.lower(col(User.email)) == email.lower(),
                col(User.is_active).is_(True),
            )
            result = await session.execute(stmt)
            return result.scalars().first()

    async def authenticate(self, email: str, password: str) -> User | None:
        """Return the active user when the password matches, else None."""
        user = await self.get_by_email(email)
        if user is None or not user.password_hash:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user
