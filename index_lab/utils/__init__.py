"""
Utilities package for Index Lab.

Exports shared helpers for logging and profiling.
Keep this package lightweight and free of domain-specific logic.
"""

from index_lab.utils.logging import configure_logging, get_logger
from index_lab.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
