from __future__ import annotations

import logging
from typing import Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from quiz_api.services.rate_limit import RateLimitDecision, SlidingWindowLimiter

logger = logging.getLogger("app.ratelimit")

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def standard_headers(decision: RateLimitDecision, window_seconds: float) -> Dict[str, str]:
    """IETF draft ``RateLimit-*`` headers; no legacy ``X-RateLimit-*``."""
    return {
        "RateLimit-Policy": f"{decision.limit};w={int(window_seconds)}",
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.reset_after),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Limit requests under ``prefix`` per client address."""

    def __init__(
        self,
        app: Callable,
        limiter: SlidingWindowLimiter,
        prefix: str = "/api/",
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[override]
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)
        client = request.client.host if request.client else "unknown"
        decision = self.limiter.hit(client)
        headers = standard_headers(decision, self.limiter.window)
        if not decision.allowed:
            logger.warning(
                "ratelimit.exceeded",
                extra={"client": client, "path": request.url.path},
            )
            headers["Retry-After"] = str(decision.reset_after)
            return JSONResponse(
                {"message": RATE_LIMIT_MESSAGE},
                status_code=HTTP_429_TOO_MANY_REQUESTS,
                headers=headers,
            )
        response = await call_next(request)
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response
