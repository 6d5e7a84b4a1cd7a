import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from dotenv import load_dotenv
from fastapi import FastAPI
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.gzip import GZipMiddleware

from db import connect_db
from quiz_api.api import admin, auth, misc, quizzes, results, teacher
from quiz_api.core.errors import install_error_handlers
from quiz_api.core.lifecycle import ServerLifecycle
from quiz_api.core.logging_utils import configure_logging
from quiz_api.core.middleware_body_limit import JSONBodyLimitMiddleware
from quiz_api.core.middleware_cors import CORSMiddleware
from quiz_api.core.middleware_errors import ErrorResponderMiddleware
from quiz_api.core.middleware_logging import RequestLoggingMiddleware
from quiz_api.core.middleware_rate_limit import RateLimitMiddleware
from quiz_api.core.middleware_security import SecurityHeadersMiddleware
from quiz_api.core.settings import DeploymentMode, Settings, settings
from quiz_api.services.rate_limit import SlidingWindowLimiter

load_dotenv()

# (router, mount prefix); prefixes are disjoint so order does not matter
ROUTE_GROUPS = (
    (auth.router, "/api/auth"),
    (quizzes.router, "/api/quizzes"),
    (results.router, "/api/results"),
    (admin.router, "/api/admin"),
    (teacher.router, "/api/teacher"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    supervisor = getattr(app.state, "fault_supervisor", None)
    if supervisor is not None:
        supervisor.attach_loop(asyncio.get_running_loop())
    yield


def install_middleware(app: FastAPI, config: Settings) -> None:
    """Install the request pipeline.

    Starlette runs the last-added middleware first, so this adds them in
    reverse: requests see security headers, compression, access log, body
    limit, rate limit, CORS, then the error responder.
    """
    app.add_middleware(ErrorResponderMiddleware)
    app.add_middleware(
        CORSMiddleware, allowed_origins=config.allowed_origins, mode=config.mode
    )
    app.add_middleware(RateLimitMiddleware, limiter=app.state.api_limiter, prefix="/api/")
    app.add_middleware(JSONBodyLimitMiddleware, max_bytes=config.MAX_JSON_BODY_BYTES)
    if config.mode is not DeploymentMode.TEST:
        app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=config.GZIP_MINIMUM_SIZE)
    app.add_middleware(
        SecurityHeadersMiddleware, hsts=config.mode is DeploymentMode.PRODUCTION
    )


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Compose the application from ``config`` (the module settings by default)."""
    config = config or settings
    app = FastAPI(title="Quiz API", lifespan=lifespan, docs_url=None, redoc_url=None)
    app.state.settings = config
    app.state.api_limiter = SlidingWindowLimiter(
        config.RATE_LIMIT_REQUESTS, config.RATE_LIMIT_WINDOW_SECONDS
    )
    app.state.login_limiter = SlidingWindowLimiter(
        config.RATE_LIMIT_LOGIN_ATTEMPTS, config.RATE_LIMIT_LOGIN_WINDOW_SECONDS
    )

    install_middleware(app, config)

    app.include_router(misc.router)
    for router, prefix in ROUTE_GROUPS:
        app.include_router(router, prefix=prefix)

    install_error_handlers(app)
    return app


if settings.mode is not DeploymentMode.TEST:
    # Configure logging (console + rotating file; JSON by default)
    configure_logging(settings)

# Initialize Sentry if DSN provided
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[StarletteIntegration()],
        traces_sample_rate=float(settings.SENTRY_TRACES_SAMPLE_RATE or 0.0),
        send_default_pii=False,
        environment=settings.env_name,
    )

app = create_app(settings)


def run() -> None:
    lifecycle = ServerLifecycle(app, settings, connect=connect_db)
    raise SystemExit(lifecycle.run())


if __name__ == "__main__":
    run()
