"""Sidecar configuration — loaded from environment / .env file, overridden by flags."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class ConfigError(Exception):
    """Raised when the sidecar cannot start with the given configuration."""


class CheckMode(str, Enum):
    METADATA = "metadata"
    READ = "read"


# Older deployments pass the name of the syscall instead of the mode
_MODE_ALIASES = {"stat": CheckMode.METADATA.value, "statfs": CheckMode.METADATA.value}


class Settings(BaseSettings):
    """Settings for the readiness sidecar."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Probe target
    target_path: str = Field(
        default="",
        validate_default=True,
        validation_alias=AliasChoices("target_path", "check_path"),
    )
    check_mode: CheckMode = CheckMode.METADATA

    # Timing (seconds)
    check_interval: float = Field(default=5.0, gt=0)
    check_timeout: float = Field(default=10.0, gt=0)  # staleness threshold

    # Bind address
    listen_host: str = "0.0.0.0"
    listen_port: int = Field(default=8080, ge=0, le=65535)

    # Max time to drain in-flight requests on shutdown
    shutdown_grace: float = Field(default=5.0, ge=0)

    # Logging
    log_level: str = "INFO"

    @field_validator("target_path")
    @classmethod
    def _require_target(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("a target path is required (--target-path / TARGET_PATH)")
        return value

    @field_validator("check_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return _MODE_ALIASES.get(value, value)
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"unknown log level: {value}")
        return value

    @property
    def target(self) -> Path:
        return Path(self.target_path)


def load_settings(**overrides: Any) -> Settings:
    """Build Settings from env/.env with explicit overrides taking precedence.

    ``None`` overrides are dropped so unset command-line flags fall through to
    the environment. Any validation failure is reported as a ConfigError.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
