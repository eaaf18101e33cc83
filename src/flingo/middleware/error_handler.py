"""Global error handlers: every error leaves the API as ``{"detail": ...}`` JSON."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from flingo.errors import (
    FlingoError,
    GameNotFoundError,
    InvalidRatingError,
    RatingUpdateConflictError,
    UserNotFoundError,
    XpUpdateConflictError,
)

logger = structlog.get_logger()

_DOMAIN_STATUS: dict[type[FlingoError], int] = {
    UserNotFoundError: 404,
    GameNotFoundError: 404,
    InvalidRatingError: 400,
    XpUpdateConflictError: 409,
    RatingUpdateConflictError: 409,
}


def domain_status(exc: FlingoError) -> int:
    for exc_type, status in _DOMAIN_STATUS.items():
        if isinstance(exc, exc_type):
            return status
    return 500


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(FlingoError)
    async def domain_exception_handler(request: Request, exc: FlingoError) -> JSONResponse:
        """Map domain errors to their HTTP status; the body carries the error code."""
        status = domain_status(exc)
        logger.info("domain_error", path=request.url.path, code=exc.code, status=status)
        content: dict[str, str] = {"detail": exc.code}
        if isinstance(exc, InvalidRatingError):
            content["message"] = str(exc)
        return JSONResponse(status_code=status, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
