import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import TaskboardError, Unauthenticated, ValidationError

logger = logging.getLogger(__name__)


def _body(request: Request, status_code: int, error: str, **extra) -> dict:
    return {"error": error, "status": status_code, "path": request.url.path, **extra}


def register_exception_handlers(app: FastAPI) -> None:
    """Attach consistent JSON error handlers; internal details are only logged."""

    @app.exception_handler(TaskboardError)
    async def domain_exception_handler(request: Request, exc: TaskboardError):
        extra = {}
        headers = None
        if isinstance(exc, ValidationError):
            extra["details"] = exc.details
        elif isinstance(exc, Unauthenticated):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(request, exc.status_code, exc.message, **extra),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(
                request,
                exc.status_code,
                exc.detail if isinstance(exc.detail, str) else "HTTPError",
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # FastAPI already puts body/query/path first in loc
        details = ValidationError.from_errors(exc.errors(), loc=None).details
        return JSONResponse(
            status_code=400,
            content=_body(request, 400, "ValidationError", details=details),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content=_body(request, 500, "Internal server error"),
        )
