"""Probe loop — runs the configured check on a fixed interval.

Successful checks refresh the FreshnessTracker; failures are logged and
leave the last-success timestamp to age. Only the shutdown signal ends
the loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from readyprobe.health.checks import CheckFn, CheckResult, execute_check
from readyprobe.health.freshness import FreshnessTracker
from readyprobe.shutdown import ShutdownSignal

logger = logging.getLogger(__name__)


class ProbeLoop:
    """Fixed-rate probe loop driven by the event loop.

    Each check runs in its own daemon thread so blocking filesystem calls
    never stall request handling, and a check stuck on a dead mount never
    keeps the process alive after shutdown.

    Lifecycle:
        probe_loop = ProbeLoop(check, target, tracker, shutdown, interval=5)
        await probe_loop.run()  # returns once shutdown is signalled
    """

    def __init__(
        self,
        check: CheckFn,
        target: Path,
        tracker: FreshnessTracker,
        shutdown: ShutdownSignal,
        interval: float = 5.0,
        on_result: Callable[[CheckResult], Any] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"check interval must be positive, got {interval}")
        self.check = check
        self.target = target
        self.tracker = tracker
        self.shutdown = shutdown
        self.interval = interval
        self.on_result = on_result

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        logger.info(
            "Probe loop started: %s every %ss", self.target, self.interval,
        )
        next_tick = loop.time() + self.interval
        try:
            while True:
                if await self._wait_until(next_tick):
                    break

                result = await self._probe_once()
                if result is None:
                    break
                self._handle_result(result)

                # Fixed rate: ticks missed while a slow probe ran are skipped
                next_tick += self.interval
                now = loop.time()
                if next_tick <= now:
                    skipped = int((now - next_tick) // self.interval) + 1
                    logger.debug("Probe overran, skipping %d tick(s)", skipped)
                    next_tick += skipped * self.interval
        finally:
            logger.info("Probe loop stopped")

    async def _wait_until(self, deadline: float) -> bool:
        """Sleep until ``deadline`` or shutdown. Returns True on shutdown."""
        timeout = max(0.0, deadline - asyncio.get_running_loop().time())
        try:
            await asyncio.wait_for(self.shutdown.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return self.shutdown.cancelled

    def _start_probe(self) -> asyncio.Future[CheckResult]:
        """Run the check on a daemon thread; the result lands in a loop future."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[CheckResult] = loop.create_future()

        def deliver(result: CheckResult) -> None:
            if not future.done():
                future.set_result(result)

        def worker() -> None:
            result = execute_check(self.check, self.target)
            if loop.is_closed():
                return
            try:
                loop.call_soon_threadsafe(deliver, result)
            except RuntimeError:
                # loop closed between the check and the hand-off
                logger.debug("Dropped late probe result for %s", self.target)

        threading.Thread(target=worker, name="probe", daemon=True).start()
        return future

    async def _probe_once(self) -> CheckResult | None:
        """Run one check; None if shutdown arrived before it finished."""
        probe = self._start_probe()
        stop = asyncio.ensure_future(self.shutdown.wait())
        try:
            done, _ = await asyncio.wait({probe, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()

        if probe not in done:
            probe.cancel()
            logger.warning("Shutdown during probe of %s, result discarded", self.target)
            return None
        return probe.result()

    def _handle_result(self, result: CheckResult) -> None:
        if result.ok:
            self.tracker.record_success()
            logger.debug("check ok: %s (%.1fms)", self.target, result.latency_ms)
        else:
            logger.warning("check failed: %s: %s", self.target, result.message)

        if self.on_result:
            try:
                self.on_result(result)
            except Exception:
                logger.exception("Probe result callback error")
