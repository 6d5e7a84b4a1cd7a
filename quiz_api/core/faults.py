"""Process-wide fault observers.

Uncaught exceptions (main thread, worker threads, and asyncio callbacks or
tasks whose exception is never retrieved) are logged. Under
``FaultPolicy.EXIT`` the supervisor also asks the server to shut down and the
process later exits non-zero; under ``FaultPolicy.LOG`` serving continues.
"""

import logging
import sys
import threading
from typing import Any, Callable, Dict, Optional

from quiz_api.core.settings import FaultPolicy

logger = logging.getLogger("app.faults")


class FaultSupervisor:
    def __init__(self, policy: FaultPolicy = FaultPolicy.LOG):
        self.policy = policy
        self.faulted = False
        self.on_fatal: Optional[Callable[[], None]] = None
        self._prev_excepthook = None
        self._prev_threading_hook = None

    def install(self) -> None:
        self._prev_excepthook = sys.excepthook
        self._prev_threading_hook = threading.excepthook
        sys.excepthook = self._excepthook
        threading.excepthook = self._threading_hook

    def uninstall(self) -> None:
        if self._prev_excepthook is not None:
            sys.excepthook = self._prev_excepthook
            self._prev_excepthook = None
        if self._prev_threading_hook is not None:
            threading.excepthook = self._prev_threading_hook
            self._prev_threading_hook = None

    def attach_loop(self, loop) -> None:
        loop.set_exception_handler(self._loop_handler)

    def report(self, kind: str, exc: Optional[BaseException], detail: str = "") -> None:
        if exc is not None:
            logger.error(
                "%s: %s",
                kind,
                detail or exc,
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"fault": kind, "policy": self.policy.value},
            )
        else:
            logger.error("%s: %s", kind, detail, extra={"fault": kind, "policy": self.policy.value})
        if self.policy is FaultPolicy.EXIT:
            self.faulted = True
            if self.on_fatal is not None:
                self.on_fatal()

    def _excepthook(self, exc_type, exc, tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            if self._prev_excepthook is not None:
                self._prev_excepthook(exc_type, exc, tb)
            return
        self.report("Uncaught Exception thrown", exc)

    def _threading_hook(self, args) -> None:
        if args.exc_type is SystemExit:
            return
        thread_name = args.thread.name if args.thread is not None else "?"
        self.report("Uncaught Exception thrown", args.exc_value, f"in thread {thread_name}")

    def _loop_handler(self, loop, context: Dict[str, Any]) -> None:
        exc = context.get("exception")
        message = context.get("message", "")
        task = context.get("future") or context.get("task")
        detail = f"{message} ({task!r})" if task is not None else message
        self.report("Unhandled Rejection", exc, detail)
