"""
Stats module.

Computes tenant-scoped evaluation rollups by paging through the backing store.
"""

from evalboard.stats.aggregator import (
    InvalidWindowError,
    WindowTooLargeError,
    aggregate_stats,
)

__all__ = ["InvalidWindowError", "WindowTooLargeError", "aggregate_stats"]
