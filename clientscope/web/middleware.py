"""FastAPI middleware: request ID injection and last-resort error handling."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = structlog.get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adds a unique X-Request-ID header to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        structlog.contextvars.clear_contextvars()
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a stable 500 body.

    Exception details are included only in debug mode.
    """

    def __init__(self, app: object, debug: bool = False) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._debug = debug

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "unhandled_request_error",
                method=request.method,
                path=request.url.path,
            )
            body: dict[str, str] = {"error": "Internal server error", "code": "internal_error"}
            if self._debug:
                body["exception"] = type(exc).__name__
                body["detail"] = str(exc)
            return JSONResponse(body, status_code=500)
