"""Password login, logout and current-identity routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncEngine

from clientscope.access.identity import Identity
from clientscope.audit.logger import record_activity
from clientscope.config.settings import get_settings
from clientscope.exceptions import Unauthenticated
from clientscope.models.api import IdentityResponse, LoginRequest, LoginResponse
from clientscope.storage.database import get_engine
from clientscope.storage.repositories.users import DatabaseUserRepository
from clientscope.web.auth.rbac import get_identity
from clientscope.web.auth.session import SESSION_COOKIE, get_session_auth, session_token
from clientscope.web.dependencies import get_user_repo

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    users: DatabaseUserRepository = Depends(get_user_repo),
    engine: AsyncEngine = Depends(get_engine),
) -> LoginResponse:
    """Create a session from email and password."""
    settings = get_settings()
    user = await users.authenticate(body.email, body.password)
    if user is None:
        logger.info("login_failed", email=body.email.lower())
        raise Unauthenticated("Invalid credentials")

    token = get_session_auth().create_session(
        user_id=user.id,
        email=user.email,
        role=user.role,
        name=user.name,
    )
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
        max_age=settings.session_max_age,
    )
    identity = Identity(user_id=user.id, email=user.email, role=user.role, name=user.name)
    await record_activity(engine, request, identity, "auth.login")
    logger.info("user_logged_in", user_id=user.id)
    return LoginResponse(user_id=user.id, role=user.role, token=token)


@router.post("/logout")
async def logout(request: Request, response: Response) -> dict[str, str]:
    token = session_token(request)
    if token:
        get_session_auth().destroy_session(token)
    response.delete_cookie(SESSION_COOKIE)
    return {"status": "ok"}


@router.get("/me", response_model=IdentityResponse)
async def me(identity: Identity = Depends(get_identity)) -> IdentityResponse:
    return IdentityResponse(
        user_id=identity.user_id,
        email=identity.email,
        role=identity.role,
        name=identity.name,
    )
