"""Resilience patterns for venue crawling."""

from .fallback import StageChain, StageOutcome
from .health import HealthMonitor
from .retry import retry_async

__all__ = [
    "retry_async",
    "StageChain",
    "StageOutcome",
    "HealthMonitor",
]
