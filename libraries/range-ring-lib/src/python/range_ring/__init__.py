"""Range Ring — stateless, coordinator-free sharding of a 64-bit key space.

Every node that knows the current member list, the range count and the
seed computes the same range → node assignment on its own.  When the
member list changes a new ring is computed from scratch, yet most
ranges keep their owner.

Quick Start::

    from range_ring import RingIndex

    ring = RingIndex(["host1", "host2", "host3"], ranges=9, seed=10)

    ring.id_for_key("key1")       # "host3"
    ring.range_for_key("key1")    # 3
    ring.ranges("host1")          # [0, 1, 7]

    # Membership changed: build a new ring and see what moved
    smaller = RingIndex(["host1", "host3"], ranges=9, seed=10)
    for move in ring.diff(smaller):
        print(move.range_id, move.old_owner, "->", move.new_owner)
"""

from .config import RingConfig, dump_config, load_config
from .exceptions import (
    AllocationExhaustedError,
    InvalidConfigurationError,
    LookupBoundaryError,
    RangeRingError,
    UnknownRangeError,
)
from .hashing import MAX_HASH_VALUE, HashFunction, murmur3_64
from .models import RangeMove, RingSnapshot
from .partitioning import AllocationResult, QuotaPlanner, RangeGrid, StreamAllocator
from .ring_index import RingIndex
from .streams import LaggedFibonacciStream, Pcg64Stream, RandomStream, StreamFactory

__all__ = [
    # Main entry point
    "RingIndex",
    # Building blocks
    "AllocationResult",
    "QuotaPlanner",
    "RangeGrid",
    "StreamAllocator",
    # Collaborators
    "HashFunction",
    "LaggedFibonacciStream",
    "MAX_HASH_VALUE",
    "Pcg64Stream",
    "RandomStream",
    "StreamFactory",
    "murmur3_64",
    # Configuration
    "RingConfig",
    "dump_config",
    "load_config",
    # Models
    "RangeMove",
    "RingSnapshot",
    # Exceptions
    "AllocationExhaustedError",
    "InvalidConfigurationError",
    "LookupBoundaryError",
    "RangeRingError",
    "UnknownRangeError",
]
