"""Shared test fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from readyprobe.config import Settings, load_settings
from readyprobe.health.checks import BLOCK_SIZE

_ENV_VARS = (
    "TARGET_PATH", "CHECK_PATH", "CHECK_MODE", "CHECK_INTERVAL", "CHECK_TIMEOUT",
    "LISTEN_HOST", "LISTEN_PORT", "SHUTDOWN_GRACE", "LOG_LEVEL",
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the host environment and any .env file out of settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def block_file(tmp_path: Path) -> Path:
    """A file holding exactly one 512-byte block."""
    path = tmp_path / "one-block.bin"
    path.write_bytes(b"\xab" * BLOCK_SIZE)
    return path


@pytest.fixture
def make_settings(tmp_path: Path):
    """Factory for Settings pointing at tmp_path, listening on an ephemeral port."""

    def _make(**overrides) -> Settings:
        values = {
            "target_path": str(tmp_path),
            "listen_host": "127.0.0.1",
            "listen_port": 0,
            "shutdown_grace": 1.0,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return load_settings(**values)

    return _make


@pytest.fixture
def subprocess_env() -> dict[str, str]:
    """Environment for child interpreters that must import readyprobe from this checkout."""
    root = str(Path(__file__).resolve().parents[1])
    env = {k: v for k, v in os.environ.items() if k not in _ENV_VARS}
    env["PYTHONPATH"] = os.pathsep.join(p for p in (root, env.get("PYTHONPATH", "")) if p)
    return env
