"""Lifecycle coordinator — wires settings, probe loop and readiness server.

Startup order:
  1. resolve the check function (unknown mode → ConfigError)
  2. bind the listener (failure → ListenerBindError)
  3. build the components, then route SIGINT/SIGTERM to the shutdown signal
  4. start the probe loop and the readiness server side by side
Then wait for the shutdown signal and for both components to finish.
"""

from __future__ import annotations

import asyncio
import logging

from readyprobe.api.server import ReadinessServer, bind_listener, create_app
from readyprobe.config import Settings
from readyprobe.health.checks import resolve_check
from readyprobe.health.freshness import FreshnessTracker
from readyprobe.health.scheduler import ProbeLoop
from readyprobe.shutdown import ShutdownSignal, install_signal_handlers, remove_signal_handlers

logger = logging.getLogger(__name__)


class Lifecycle:
    """Owns the shutdown signal and the two long-running components."""

    def __init__(
        self,
        settings: Settings,
        shutdown: ShutdownSignal | None = None,
        handle_signals: bool = True,
    ) -> None:
        self.settings = settings
        self.shutdown = shutdown or ShutdownSignal()
        self.handle_signals = handle_signals
        self.tracker = FreshnessTracker(threshold=settings.check_timeout)
        self.server: ReadinessServer | None = None
        self.probe_loop: ProbeLoop | None = None

    async def run(self) -> None:
        """Run until shutdown is signalled and both components have stopped."""
        settings = self.settings
        check = resolve_check(settings.check_mode)
        sock = bind_listener(settings.listen_host, settings.listen_port)

        self.probe_loop = ProbeLoop(
            check=check,
            target=settings.target,
            tracker=self.tracker,
            shutdown=self.shutdown,
            interval=settings.check_interval,
        )
        self.server = ReadinessServer(
            create_app(self.tracker),
            sock,
            self.shutdown,
            grace=settings.shutdown_grace,
            log_level=settings.log_level,
        )
        logger.info(
            "Checking %s (mode=%s, interval=%ss, stale after %ss)",
            settings.target, settings.check_mode.value,
            settings.check_interval, settings.check_timeout,
        )

        loop = asyncio.get_running_loop()
        if self.handle_signals:
            install_signal_handlers(self.shutdown, loop)

        tasks = [
            asyncio.create_task(self.probe_loop.run(), name="probe-loop"),
            asyncio.create_task(self.server.serve_until_shutdown(), name="readiness-server"),
        ]
        waiter = asyncio.create_task(self.shutdown.wait(), name="shutdown-wait")
        try:
            done, _ = await asyncio.wait({waiter, *tasks}, return_when=asyncio.FIRST_COMPLETED)
            if not self.shutdown.cancelled:
                # A component exited on its own; take the other one down with it
                exited = next(t for t in tasks if t in done)
                self.shutdown.cancel(f"{exited.get_name()} exited")

            logger.info("Exiting...")
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            waiter.cancel()
            if self.handle_signals:
                remove_signal_handlers(loop)

        for task, result in zip(tasks, results):
            if isinstance(result, Exception):
                logger.error("%s failed: %s", task.get_name(), result)
                raise result

        age = self.tracker.last_success_age()
        logger.info(
            "Shutdown complete (last success %s)",
            "never" if age is None else f"{age:.1f}s ago",
        )
