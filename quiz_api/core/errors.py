"""Global error responder.

Every error that reaches the client leaves through ``error_response`` and has
the shape ``{"message": <str>}`` with the error's status or 500.
"""

import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi import HTTPException as FastAPIHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("app.errors")

DEFAULT_MESSAGE = "Internal Server Error"


class AppError(Exception):
    """An error with an optional HTTP status, rendered by the global handler."""

    status: Optional[int] = None

    def __init__(self, message: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class CORSRejected(AppError):
    """Raised for a disallowed Origin in production. Carries no status."""

    def __init__(self, origin: str):
        super().__init__("Not allowed by CORS")
        self.origin = origin


class PayloadTooLarge(AppError):
    status = 413

    def __init__(self, limit: int):
        super().__init__("request entity too large")
        self.limit = limit


def error_status(exc: BaseException) -> int:
    status = getattr(exc, "status", None)
    if status is None:
        status = getattr(exc, "status_code", None)
    try:
        return int(status) if status else 500
    except (TypeError, ValueError):
        return 500


def error_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if message is None:
        message = getattr(exc, "detail", None)
    if message is None:
        message = str(exc)
    if not isinstance(message, str):
        message = str(message)
    return message or DEFAULT_MESSAGE


def error_response(request: Optional[Request], exc: BaseException) -> JSONResponse:
    """Log ``exc`` and translate it into the JSON error shape."""
    status = error_status(exc)
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        "Global error handler caught: %s",
        stack if exc.__traceback__ is not None else repr(exc),
        extra={
            "status_code": status,
            "path": request.url.path if request is not None else None,
            "request_id": getattr(request.state, "request_id", None) if request is not None else None,
        },
    )
    resp = JSONResponse({"message": error_message(exc)}, status_code=status)
    request_id = getattr(request.state, "request_id", None) if request is not None else None
    if request_id:
        resp.headers["X-Request-ID"] = str(request_id)
    headers = getattr(exc, "headers", None)
    if headers:
        for k, v in headers.items():
            resp.headers[k] = v
    return resp


async def app_error_handler(request: Request, exc: AppError):
    return error_response(request, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    wrapped = AppError("; ".join(parts) or "Invalid request", status=400)
    return error_response(request, wrapped)


async def unhandled_exception_handler(request: Request, exc: Exception):
    # Last resort for failures raised by the middleware layers themselves
    return error_response(request, exc)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(FastAPIHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
