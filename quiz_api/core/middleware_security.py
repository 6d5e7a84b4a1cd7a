from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

CSP_PARTS = (
    "default-src 'self';",
    "base-uri 'self';",
    "font-src 'self' https: data:;",
    "form-action 'self';",
    "frame-ancestors 'self';",
    "img-src 'self' data:;",
    "object-src 'none';",
    "script-src 'self';",
    "script-src-attr 'none';",
    "style-src 'self' https: 'unsafe-inline';",
    "upgrade-insecure-requests",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach hardening headers to every response.

    Headers already set by a handler are left untouched.
    """

    def __init__(self, app: ASGIApp, hsts: bool = True):
        super().__init__(app)
        self.hsts = hsts
        self.headers = {
            "Content-Security-Policy": " ".join(CSP_PARTS),
            "Cross-Origin-Opener-Policy": "same-origin",
            "Cross-Origin-Resource-Policy": "same-origin",
            "Origin-Agent-Cluster": "?1",
            "Referrer-Policy": "no-referrer",
            "X-Content-Type-Options": "nosniff",
            "X-DNS-Prefetch-Control": "off",
            "X-Download-Options": "noopen",
            "X-Frame-Options": "SAMEORIGIN",
            "X-Permitted-Cross-Domain-Policies": "none",
            "X-XSS-Protection": "0",
        }
        if self.hsts:
            self.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

    async def dispatch(self, request, call_next):
        response: Response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
