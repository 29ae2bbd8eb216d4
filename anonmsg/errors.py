import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from .observability import INTERNAL_ERRORS_TOTAL

logger = logging.getLogger(__name__)

# Error types raised by our own field validators; their message is shown verbatim
CUSTOM_ERROR_TYPES = {"key_length", "content_missing", "content_length"}


def validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") in CUSTOM_ERROR_TYPES:
        return first["msg"]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid request: {location}: {first['msg']}"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": validation_message(exc)})


async def unhandled_exception_handler(request: Request, exc: Exception):
    INTERNAL_ERRORS_TOTAL.inc()
    logger.exception(
        f"Unhandled error on {request.method} {request.url.path}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns unhandled errors into an opaque 500 inside the middleware stack.

    Sits innermost so metrics and CORS headers still apply to the response.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return await unhandled_exception_handler(request, exc)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
