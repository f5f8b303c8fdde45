"""Standard error handler: consistent error responses across all routes."""

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import AppError
from ..utils.logging import get_logger
from .security_headers import SECURITY_HEADERS

logger = get_logger("usermgmt.middleware.error_handler")


def _envelope(
    request: Request, status_code: int, message: str, headers: dict | None = None, **extra
) -> JSONResponse:
    content = {
        "error": message,
        "status_code": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": getattr(request.state, "request_id", None),
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Register standard error handlers on the app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _envelope(request, exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _envelope(request, exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # The API reports malformed input as 400, never 422
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
            for e in exc.errors()
        ]
        return _envelope(request, 400, "Invalid request", errors=errors)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        logger.error(
            "unhandled_exception",
            error=str(exc),
            request_id=request_id,
            path=str(request.url.path),
            exc_info=exc,
        )
        # ServerErrorMiddleware sits outside the header middlewares
        headers = dict(SECURITY_HEADERS)
        if request_id:
            headers["X-Request-ID"] = request_id
        return _envelope(request, 500, "Internal server error", headers=headers)
