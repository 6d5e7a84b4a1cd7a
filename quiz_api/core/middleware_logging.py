import logging
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("app.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with a request id, echoed back as ``X-Request-ID``."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.perf_counter()
        duration_ms: Optional[int] = None
        # Stash request_id for downstream handlers and the error responder
        request.state.request_id = request_id

        extra_ctx = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
            "referer": request.headers.get("referer"),
            "user_agent": request.headers.get("user-agent"),
        }
        logger.info("request.start", extra=extra_ctx)
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.exception("request.error", extra={**extra_ctx, "duration_ms": duration_ms})
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={**extra_ctx, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response
