"""HTTP side of the sidecar — FastAPI app, listener binding, uvicorn server."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from collections.abc import Iterator

import uvicorn
from fastapi import FastAPI

from readyprobe import __version__
from readyprobe.api.routes import router
from readyprobe.health.freshness import FreshnessTracker
from readyprobe.shutdown import ShutdownSignal

logger = logging.getLogger(__name__)


class ListenerBindError(Exception):
    """Raised when the readiness listener cannot be bound."""


def create_app(tracker: FreshnessTracker) -> FastAPI:
    """Create the readiness FastAPI application.

    Docs and the OpenAPI schema are switched off so /ready is the only route.
    """
    app = FastAPI(
        title="readyprobe",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.tracker = tracker
    app.include_router(router)
    return app


def bind_listener(host: str, port: int, backlog: int = 128) -> socket.socket:
    """Bind and listen on host:port before any component starts."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError as e:
        sock.close()
        raise ListenerBindError(f"Cannot listen on {host or '*'}:{port}: {e}") from e
    return sock


class ReadinessServer(uvicorn.Server):
    """uvicorn server stopped by the shared ShutdownSignal, not by OS signals.

    On shutdown the listener is closed at once; in-flight requests get up to
    ``grace`` seconds to finish before their connections are dropped.
    """

    def __init__(
        self,
        app: FastAPI,
        sock: socket.socket,
        shutdown: ShutdownSignal,
        grace: float = 5.0,
        log_level: str = "INFO",
    ) -> None:
        config = uvicorn.Config(
            app,
            lifespan="off",
            access_log=False,
            log_config=None,
            log_level=log_level.lower(),
            timeout_graceful_shutdown=grace,
        )
        super().__init__(config)
        self.sock = sock
        self.shutdown_signal = shutdown

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        pass

    async def serve_until_shutdown(self) -> None:
        watcher = asyncio.create_task(self._exit_on_shutdown(), name="readiness-shutdown")
        host, port = self.sock.getsockname()[:2]
        logger.info("Readiness server listening on %s:%d", host, port)
        try:
            await self.serve(sockets=[self.sock])
        finally:
            watcher.cancel()
            # uvicorn skips its own shutdown if told to exit during startup
            for server in getattr(self, "servers", []):
                server.close()
            self.sock.close()
            logger.info("Readiness server stopped")

    async def _exit_on_shutdown(self) -> None:
        await self.shutdown_signal.wait()
        self.should_exit = True
