"""
Error handling

Maps the service exception hierarchy onto HTTP responses in the standard
envelope, and makes sure nothing internal leaks on unexpected failures:
- Client-facing errors → their status and message
- Validation errors → 422 with field errors
- Anything else → logged with traceback, generic 500 returned
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from silver_admin.core.config import settings
from silver_admin.core.exceptions import AdminBackendError
from silver_admin.core.responses import error

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


async def admin_backend_error_handler(request: Request, exc: AdminBackendError):
    if exc.status_code >= 500:
        logger.error("Error on %s %s: %s", request.method, request.url.path, exc.to_dict())
    else:
        logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return error(exc.status_code, exc.message, exc.details or None)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return error(422, "Validation failed", errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error(exc.status_code, message)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded on %s", request.url.path)
    response = error(429, "Too many requests. Please try again later.")
    response.headers["Retry-After"] = "60"
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    error_id = f"{request.client.host if request.client else 'unknown'}-{id(exc)}"
    logger.error(
        "Unhandled exception [%s]: %s: %s\nPath: %s\nMethod: %s\nTraceback:\n%s",
        error_id,
        type(exc).__name__,
        exc,
        request.url.path,
        request.method,
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    if settings.DEBUG:
        return error(500, f"{type(exc).__name__}: {exc}", {"error_id": error_id})
    return error(500, GENERIC_ERROR_MESSAGE, {"error_id": error_id})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AdminBackendError, admin_backend_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
