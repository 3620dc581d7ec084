# Partitioning subpackage

from .quota_planner import QuotaPlanner
from .range_grid import RangeGrid
from .stream_allocator import DEFAULT_DRAW_LIMIT_FACTOR, AllocationResult, StreamAllocator

__all__ = [
    "AllocationResult",
    "DEFAULT_DRAW_LIMIT_FACTOR",
    "QuotaPlanner",
    "RangeGrid",
    "StreamAllocator",
]
