"""readyprobe — filesystem health probe exposed as an HTTP readiness endpoint."""

__version__ = "0.1.0"
