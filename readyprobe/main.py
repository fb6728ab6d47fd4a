"""Entry point for the readiness sidecar — `readyprobe` console script."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.panel import Panel

from readyprobe import __version__
from readyprobe.api.server import ListenerBindError
from readyprobe.config import CheckMode, ConfigError, Settings, load_settings
from readyprobe.lifecycle import Lifecycle

console = Console(stderr=True)
logger = logging.getLogger("readyprobe")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readyprobe",
        description="Probe a filesystem path and serve the result on GET /ready.",
    )
    parser.add_argument(
        "--target-path", "--check-path", dest="target_path",
        help="Path to check (env: TARGET_PATH or CHECK_PATH)",
    )
    parser.add_argument(
        "--check-mode", dest="check_mode",
        help=f"Mode of check: {', '.join(m.value for m in CheckMode)} (env: CHECK_MODE)",
    )
    parser.add_argument(
        "--check-interval", dest="check_interval", type=float,
        help="Seconds between checks (default 5)",
    )
    parser.add_argument(
        "--check-timeout", dest="check_timeout", type=float,
        help="Seconds a successful check keeps the endpoint ready (default 10)",
    )
    parser.add_argument("--host", dest="listen_host", help="Bind address (default 0.0.0.0)")
    parser.add_argument("--port", dest="listen_port", type=int, help="Bind port (default 8080)")
    parser.add_argument(
        "--shutdown-grace", dest="shutdown_grace", type=float,
        help="Seconds to drain in-flight requests on shutdown (default 5)",
    )
    parser.add_argument("--log-level", dest="log_level", help="Log level (default INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def print_banner(settings: Settings) -> None:
    console.print(
        Panel.fit(
            f"[bold]Readiness Sidecar[/bold]\n"
            f"Target:   {settings.target_path}\n"
            f"Mode:     {settings.check_mode.value}\n"
            f"Interval: {settings.check_interval}s  Stale after: {settings.check_timeout}s\n"
            f"Bind:     {settings.listen_host or '*'}:{settings.listen_port}  GET /ready",
            title="readyprobe",
            border_style="green",
        )
    )


def main(argv: list[str] | None = None) -> None:
    """Start the sidecar and block until SIGINT/SIGTERM."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(**vars(args))
    except ConfigError as e:
        console.print(f"[bold red]{e}[/bold red]")
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    print_banner(settings)

    try:
        asyncio.run(Lifecycle(settings).run())
    except (ConfigError, ListenerBindError) as e:
        logger.error("%s", e)
        console.print(f"[bold red]{e}[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
