"""Mapping of access errors onto HTTP responses.

401 means no identity, 403 means a role-gated operation refused the role,
and 404 covers every scoped lookup that came back empty.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse

from clientscope.exceptions import AccessDenied, Forbidden, Unauthenticated

if TYPE_CHECKING:
    from fastapi import FastAPI, Request


async def unauthenticated_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": "Unauthorized"}, status_code=401)


async def forbidden_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": "Forbidden"}, status_code=403)


async def access_denied_handler(request: Request, exc: Exception) -> JSONResponse:
    resource = exc.resource if isinstance(exc, AccessDenied) else "Resource"
    return JSONResponse({"error": f"{resource} not found"}, status_code=404)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Unauthenticated, unauthenticated_handler)
    app.add_exception_handler(Forbidden, forbidden_handler)
    app.add_exception_handler(AccessDenied, access_denied_handler)
