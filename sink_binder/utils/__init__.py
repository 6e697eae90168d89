"""
Utilities package for sink-binder.

Exports shared helpers for logging and profiling.
Keep this package lightweight and free of domain-specific logic.
"""

from sink_binder.utils.logging import configure_logging, get_logger
from sink_binder.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
