"""Start-up sequence: connect to the database, then serve.

``IDLE -> CONNECTING -> LISTENING -> STOPPED`` on success,
``IDLE -> CONNECTING -> FAILED`` when the database is unreachable. In test
mode the controller stays ``IDLE``.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from quiz_api.core.errors import AppError, error_response
from quiz_api.core.faults import FaultSupervisor
from quiz_api.core.settings import DeploymentMode, Settings

logger = logging.getLogger("app.lifecycle")


class LifecycleState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    LISTENING = "listening"
    STOPPED = "stopped"
    FAILED = "failed"


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 503 when the app takes longer than ``timeout`` seconds to respond."""

    def __init__(self, app, timeout: float = 120.0) -> None:
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(self, request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), self.timeout)
        except asyncio.TimeoutError:
            return error_response(request, AppError("Request timed out", status=503))


def build_server(app: FastAPI, settings: Settings) -> uvicorn.Server:
    config = uvicorn.Config(
        RequestTimeoutMiddleware(app, timeout=settings.SERVER_TIMEOUT_SECONDS),
        host=settings.HOST,
        port=settings.PORT,
        timeout_keep_alive=settings.KEEP_ALIVE_TIMEOUT_SECONDS,
        log_config=None,  # logging is configured by configure_logging
        lifespan="on",
    )
    return uvicorn.Server(config)


class ServerLifecycle:
    def __init__(
        self,
        app: FastAPI,
        settings: Settings,
        connect: Callable[[], None],
        server_factory: Callable[[FastAPI, Settings], uvicorn.Server] = build_server,
        supervisor: Optional[FaultSupervisor] = None,
    ):
        self.app = app
        self.settings = settings
        self.connect = connect
        self.server_factory = server_factory
        self.supervisor = supervisor or FaultSupervisor(settings.FAULT_POLICY)
        self.state = LifecycleState.IDLE
        self.server: Optional[uvicorn.Server] = None

    def _request_shutdown(self) -> None:
        if self.server is not None:
            self.server.should_exit = True

    def run(self) -> int:
        """Run to completion and return the process exit status."""
        self.supervisor.install()
        self.supervisor.on_fatal = self._request_shutdown
        self.app.state.fault_supervisor = self.supervisor

        if self.settings.mode is DeploymentMode.TEST:
            logger.info("Test mode: not connecting to the database or listening")
            return 0

        self.state = LifecycleState.CONNECTING
        try:
            self.connect()
        except Exception:
            logger.exception("Failed to connect to DB")
            self.state = LifecycleState.FAILED
            return 1

        self.server = self.server_factory(self.app, self.settings)
        self.state = LifecycleState.LISTENING
        logger.info(
            "Server running on port %s (env: %s)",
            self.settings.PORT,
            self.settings.env_name,
            extra={"port": self.settings.PORT, "env": self.settings.env_name},
        )
        self.server.run()
        self.state = LifecycleState.STOPPED
        return 1 if self.supervisor.faulted else 0
