"""Health subsystem — probe functions, freshness tracker, probe loop."""

from .checks import CheckResult, ProbeError, Status, execute_check, resolve_check
from .freshness import FreshnessTracker
from .scheduler import ProbeLoop
