"""Probe functions — filesystem metadata and random block read checks.

A check takes the target path and returns None on success; any failure is
raised (OSError from the filesystem, ProbeError for probe-level problems).
execute_check wraps a check into a CheckResult and never raises.
"""

from __future__ import annotations

import os
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from readyprobe.config import CheckMode, ConfigError

BLOCK_SIZE = 1 << 9  # 512 bytes

CheckFn = Callable[[Path], None]


class ProbeError(Exception):
    """Raised when a probe completes its I/O but the result is unusable."""


# ── Models ───────────────────────────────────────────────────────────────────


class Status(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass
class CheckResult:
    """Result of a single probe execution."""

    check_type: str
    status: Status
    latency_ms: float
    message: str = ""
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    @property
    def ok(self) -> bool:
        return self.status == Status.UP


# ── Check functions ──────────────────────────────────────────────────────────


def check_metadata(target: Path) -> None:
    """Filesystem metadata check — statvfs on the target path."""
    os.statvfs(target)


def check_read(target: Path, rng: random.Random | None = None) -> None:
    """Read one 512-byte block at a random block-aligned offset."""
    rng = rng or random
    with open(target, "rb", buffering=0) as fh:
        size = fh.seek(0, os.SEEK_END)
        if size <= 0:
            raise ProbeError(f"{target} is empty")

        blocks = size // BLOCK_SIZE
        if blocks == 0:
            raise ProbeError(
                f"short read: {target} is {size} bytes, smaller than one {BLOCK_SIZE}-byte block"
            )

        offset = rng.randrange(blocks) * BLOCK_SIZE
        fh.seek(offset, os.SEEK_SET)
        data = fh.read(BLOCK_SIZE)

    if data is None or len(data) < BLOCK_SIZE:
        got = 0 if data is None else len(data)
        raise ProbeError(f"short read: got {got} of {BLOCK_SIZE} bytes at offset {offset}")


# Dispatcher
CHECKS: dict[CheckMode, CheckFn] = {
    CheckMode.METADATA: check_metadata,
    CheckMode.READ: check_read,
}


def resolve_check(mode: CheckMode | str) -> CheckFn:
    """Map a check mode to its function. Unknown modes are a startup error."""
    try:
        return CHECKS[CheckMode(mode)]
    except ValueError:
        raise ConfigError(f"Unsupported check: {mode}") from None


def execute_check(check: CheckFn, target: Path) -> CheckResult:
    """Run a check and report the outcome as a CheckResult."""
    check_type = getattr(check, "__name__", "check").removeprefix("check_")
    t0 = time.perf_counter()
    try:
        check(target)
    except Exception as e:
        latency = (time.perf_counter() - t0) * 1000
        return CheckResult(
            check_type=check_type, status=Status.DOWN, latency_ms=round(latency, 1),
            message=f"{type(e).__name__}: {e}",
        )
    latency = (time.perf_counter() - t0) * 1000
    return CheckResult(
        check_type=check_type, status=Status.UP, latency_ms=round(latency, 1),
        message="OK",
    )
