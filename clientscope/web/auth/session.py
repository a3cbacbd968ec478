"""Server-side session tokens (cookie or Bearer)."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import structlog

from clientscope.config.settings import get_settings

if TYPE_CHECKING:
    from starlette.requests import Request

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "session"


class SessionAuth:
    """Signed opaque session tokens mapped to identity data held in memory."""

    def __init__(self, secret_key: str, max_age: int = 86400) -> None:
        self._secret = secret_key.encode()
        self._max_age = max_age
        self._sessions: dict[str, dict[str, Any]] = {}

    def create_session(
        self,
        *,
        user_id: str | None,
        email: str | None,
        role: str | None = None,
        name: str = "",
    ) -> str:
        """Create a new session and return the token."""
        token = secrets.token_urlsafe(32)
        signed_token = f"{token}.{self._sign(token)}"

        self._sessions[signed_token] = {
            "user_id": user_id,
            "email": email,
            "role": role,
            "name": name,
            "created_at": time.time(),
        }
        logger.info("session_created", user_id=user_id)
        return signed_token

    def validate_session(self, token: str | None) -> dict[str, Any] | None:
        """Validate a session token and return its identity data."""
        if not token or "." not in token:
            return None

        raw_token, signature = token.rsplit(".", 1)
        if not hmac.compare_digest(signature, self._sign(raw_token)):
            return None

        session = self._sessions.get(token)
        if not session:
            return None

        if time.time() - session["created_at"] > self._max_age:
            self.destroy_session(token)
            return None

        return session

    def destroy_session(self, token: str) -> None:
        """Remove a session."""
        self._sessions.pop(token, None)
        logger.info("session_destroyed")

    def _sign(self, data: str) -> str:
        """Create HMAC signature for a token."""
        return hmac.new(self._secret, data.encode(), hashlib.sha256).hexdigest()[:32]


@lru_cache
def get_session_auth() -> SessionAuth:
    """Return the process-wide session store."""
    settings = get_settings()
    return SessionAuth(secret_key=settings.secret_key, max_age=settings.session_max_age)


def session_token(request: Request) -> str | None:
    """Extract the session token from the Bearer header or the session cookie."""
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(SESSION_COOKIE)
