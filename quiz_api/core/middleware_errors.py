from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from quiz_api.core.errors import error_response


class ErrorResponderMiddleware(BaseHTTPMiddleware):
    """Render uncaught route exceptions inside the middleware pipeline.

    Installed innermost so the outer layers still decorate the 500 response.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return error_response(request, exc)
