"""One-shot shutdown signal shared by every long-running component.

Once cancelled it stays cancelled; any number of tasks can wait on it.
OS signals are bound to it by install_signal_handlers().
"""

from __future__ import annotations

import asyncio
import logging
import signal

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownSignal:
    """Level-triggered cancellation token backed by an asyncio.Event."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "requested") -> bool:
        """Raise the signal. Returns True only for the call that raised it."""
        if self._event.is_set():
            return False
        self.reason = reason
        self._event.set()
        logger.info("Shutdown signalled (%s)", reason)
        return True

    async def wait(self) -> None:
        await self._event.wait()


def install_signal_handlers(
    shutdown: ShutdownSignal,
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    """Route SIGINT/SIGTERM to ``shutdown.cancel``."""
    loop = loop or asyncio.get_running_loop()
    for sig in TERMINATION_SIGNALS:
        loop.add_signal_handler(sig, shutdown.cancel, sig.name)


def remove_signal_handlers(loop: asyncio.AbstractEventLoop | None = None) -> None:
    loop = loop or asyncio.get_running_loop()
    for sig in TERMINATION_SIGNALS:
        loop.remove_signal_handler(sig)
