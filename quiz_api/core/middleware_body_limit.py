from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from quiz_api.core.errors import PayloadTooLarge, error_response

_BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _is_json(request: Request) -> bool:
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    return content_type == "application/json" or content_type.endswith("+json")


class JSONBodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject JSON request bodies larger than ``max_bytes`` before routing."""

    def __init__(self, app, max_bytes: int = 10 * 1024) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next):
        if request.method in _BODY_METHODS and _is_json(request):
            declared = request.headers.get("content-length")
            if declared is not None and declared.isdigit():
                size = int(declared)
            else:
                # Chunked upload: the body is cached on the request for the handler
                size = len(await request.body())
            if size > self.max_bytes:
                return error_response(request, PayloadTooLarge(self.max_bytes))
        return await call_next(request)
