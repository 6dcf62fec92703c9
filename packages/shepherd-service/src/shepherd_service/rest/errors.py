"""HTTP boundary for application errors.

Authorization failures raised anywhere below the route handlers arrive here
unmodified and are translated once into an HTTP response.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shepherd_service.auth.platform import AuthAPIError
from shepherd_service.errors import AppError, Forbidden, NotFound, Redirect, Unauthorized, decode_error
from shepherd_service.pagination import InvalidCursorError

log = structlog.get_logger(__name__)

_AUTH_API_STATUS = {
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
}


def status_for(error: AppError) -> int:
    kind = decode_error(error.data)
    if isinstance(kind, Unauthorized):
        return 401
    if isinstance(kind, Forbidden):
        return 403
    if isinstance(kind, NotFound):
        return 404
    if isinstance(kind, Redirect):
        # A JSON signal rather than a 3xx, which fetch clients would follow.
        return 409
    return 500


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code == 500:
            log.error("malformed_app_error", data=exc.data, path=request.url.path)
            return JSONResponse(status_code=500, content={"error": "An unexpected error occurred"})
        log.info("app_error", code=str(exc), path=request.url.path)
        return JSONResponse(status_code=status_code, content={"error": exc.data})

    @app.exception_handler(AuthAPIError)
    async def handle_auth_api_error(request: Request, exc: AuthAPIError) -> JSONResponse:
        log.info("auth_api_error", status=exc.status, message=exc.message, path=request.url.path)
        return JSONResponse(
            status_code=_AUTH_API_STATUS.get(exc.status, 400),
            content={"error": {"code": exc.status, "message": exc.message}},
        )

    @app.exception_handler(InvalidCursorError)
    async def handle_invalid_cursor(request: Request, exc: InvalidCursorError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})
