from __future__ import annotations

import logging
from typing import Callable, FrozenSet, Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from quiz_api.core.errors import CORSRejected, error_response
from quiz_api.core.settings import DeploymentMode

logger = logging.getLogger("app.cors")

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization")


def check_origin(origin: Optional[str], allowed: FrozenSet[str], mode: DeploymentMode) -> bool:
    """Decide whether ``origin`` may call the API.

    Requests without an Origin (curl, mobile apps, server-to-server) are
    allowed. Outside production an unknown origin is allowed with a warning;
    in production it raises ``CORSRejected``.
    """
    if not origin:
        return True
    if origin in allowed:
        return True
    if mode is DeploymentMode.PRODUCTION:
        logger.warning("CORS blocked origin: %s", origin, extra={"origin": origin})
        raise CORSRejected(origin)
    logger.warning("CORS origin not in whitelist (dev): %s", origin, extra={"origin": origin})
    return True


class CORSMiddleware(BaseHTTPMiddleware):
    """Origin whitelist with credentials; preflights are answered here."""

    def __init__(
        self,
        app: Callable,
        allowed_origins: Iterable[str],
        mode: DeploymentMode = DeploymentMode.DEVELOPMENT,
    ) -> None:
        super().__init__(app)
        self.allowed = frozenset(allowed_origins)
        self.mode = mode

    def _cors_headers(self, origin: Optional[str]) -> dict:
        headers = {"Access-Control-Allow-Credentials": "true", "Vary": "Origin"}
        if origin:
            headers["Access-Control-Allow-Origin"] = origin
        return headers

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[override]
        origin = request.headers.get("origin")
        try:
            check_origin(origin, self.allowed, self.mode)
        except CORSRejected as exc:
            return error_response(request, exc)

        headers = self._cors_headers(origin)
        if request.method == "OPTIONS":
            headers["Access-Control-Allow-Methods"] = ",".join(ALLOWED_METHODS)
            headers["Access-Control-Allow-Headers"] = ",".join(ALLOWED_HEADERS)
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        for name, value in headers.items():
            if name == "Vary" and "vary" in response.headers:
                vary = response.headers["vary"]
                if "origin" not in vary.lower():
                    response.headers["Vary"] = f"{vary}, Origin"
                continue
            response.headers[name] = value
        return response
