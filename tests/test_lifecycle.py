import asyncio
import logging
import sys
import threading

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from quiz_api.core.faults import FaultSupervisor
from quiz_api.core.lifecycle import (
    LifecycleState,
    RequestTimeoutMiddleware,
    ServerLifecycle,
    build_server,
)
from quiz_api.core.settings import FaultPolicy


class FakeServer:
    def __init__(self, lifecycle_ref):
        self.lifecycle_ref = lifecycle_ref
        self.should_exit = False
        self.states_seen = []

    def run(self):
        self.states_seen.append(self.lifecycle_ref[0].state)


@pytest.fixture
def lifecycle_factory(make_settings):
    created = []

    def _make(connect=lambda: None, **overrides):
        settings = make_settings(**overrides)
        ref = []
        servers = []

        def factory(app, cfg):
            server = FakeServer(ref)
            servers.append(server)
            return server

        lc = ServerLifecycle(FastAPI(), settings, connect=connect, server_factory=factory)
        ref.append(lc)
        lc.servers = servers
        created.append(lc)
        return lc

    yield _make
    for lc in created:
        lc.supervisor.uninstall()


def test_test_mode_stays_idle(lifecycle_factory):
    calls = []
    lc = lifecycle_factory(connect=lambda: calls.append("connect"), NODE_ENV="test")
    assert lc.run() == 0
    assert lc.state is LifecycleState.IDLE
    assert calls == []
    assert lc.servers == []
    assert lc.server is None


def test_connect_failure_is_fatal(lifecycle_factory, caplog):
    def broken():
        raise ConnectionError("db down")

    caplog.set_level(logging.ERROR, logger="app.lifecycle")
    lc = lifecycle_factory(connect=broken, NODE_ENV="development")
    assert lc.run() == 1
    assert lc.state is LifecycleState.FAILED
    assert lc.servers == []
    assert any("Failed to connect to DB" in r.getMessage() for r in caplog.records)


def test_connect_then_listen(lifecycle_factory, caplog):
    caplog.set_level(logging.INFO, logger="app.lifecycle")
    lc = lifecycle_factory(NODE_ENV="production", PORT=5055)
    assert lc.run() == 0
    assert lc.servers[0].states_seen == [LifecycleState.LISTENING]
    assert lc.state is LifecycleState.STOPPED
    assert lc.server is lc.servers[0]
    assert any(
        "Server running on port 5055 (env: production)" in r.getMessage() for r in caplog.records
    )


def test_exit_policy_stops_server_and_exits_nonzero(lifecycle_factory):
    lc = lifecycle_factory(NODE_ENV="development", FAULT_POLICY="exit")

    class FaultyServer:
        should_exit = False

        def run(self):
            lc.supervisor.report("Unhandled Rejection", RuntimeError("boom"))

    lc.server_factory = lambda app, cfg: FaultyServer()
    assert lc.run() == 1
    assert lc.server.should_exit is True


def test_build_server_timeouts(make_settings):
    app = FastAPI()
    server = build_server(app, make_settings(PORT=6001))
    assert server.config.timeout_keep_alive == 65
    assert server.config.port == 6001
    assert isinstance(server.config.app, RequestTimeoutMiddleware)
    assert server.config.app.timeout == 120.0


def test_request_timeout_returns_503():
    app = FastAPI()

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(0.3)
        return {"ok": True}

    @app.get("/fast")
    async def fast():
        return {"ok": True}

    c = TestClient(RequestTimeoutMiddleware(app, timeout=0.05))
    assert c.get("/fast").status_code == 200
    r = c.get("/slow")
    assert r.status_code == 503
    assert r.json() == {"message": "Request timed out"}


def test_log_policy_keeps_running(caplog):
    sup = FaultSupervisor(FaultPolicy.LOG)
    fatal = []
    sup.on_fatal = lambda: fatal.append(True)
    caplog.set_level(logging.ERROR, logger="app.faults")
    sup._loop_handler(
        None, {"message": "Task exception was never retrieved", "exception": ValueError("x")}
    )
    assert fatal == []
    assert sup.faulted is False
    assert any(r.getMessage().startswith("Unhandled Rejection") for r in caplog.records)


def test_exit_policy_requests_shutdown():
    sup = FaultSupervisor(FaultPolicy.EXIT)
    fatal = []
    sup.on_fatal = lambda: fatal.append(True)
    sup._loop_handler(None, {"message": "callback failed"})
    assert fatal == [True]
    assert sup.faulted is True


def test_thread_exceptions_are_observed(caplog):
    sup = FaultSupervisor(FaultPolicy.LOG)
    sup.install()
    try:
        caplog.set_level(logging.ERROR, logger="app.faults")

        def worker():
            raise RuntimeError("worker crashed")

        t = threading.Thread(target=worker, name="quiz-worker")
        t.start()
        t.join()
    finally:
        sup.uninstall()
    assert threading.excepthook is not sup._threading_hook
    records = [r for r in caplog.records if r.name == "app.faults"]
    assert records and "quiz-worker" in records[0].getMessage()


def test_install_and_uninstall_restore_hooks():
    before = sys.excepthook
    sup = FaultSupervisor()
    sup.install()
    assert sys.excepthook == sup._excepthook
    sup.uninstall()
    assert sys.excepthook is before


def test_loop_handler_attached_on_startup(make_app):
    app = make_app()
    sup = FaultSupervisor(FaultPolicy.LOG)
    app.state.fault_supervisor = sup

    @app.get("/api/loop-handler")
    async def loop_handler():
        handler = asyncio.get_running_loop().get_exception_handler()
        return {"attached": handler == sup._loop_handler}

    with TestClient(app) as c:
        assert c.get("/api/loop-handler").json() == {"attached": True}
