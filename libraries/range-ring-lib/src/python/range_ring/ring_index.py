"""Ring index — the immutable result of one allocation run.

A ring is built once from the node ids, the range count and the seed,
and never changes afterwards.  Any membership change means building a
new ring; consecutive rings for almost the same node set share most of
their range assignments.

Lookups hash the key and binary-search the range upper bounds.  They
touch no mutable state, so one ring can be shared by any number of
threads without locking.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from .config import RingConfig
from .exceptions import InvalidConfigurationError, UnknownRangeError
from .hashing import MAX_SEED, HashFunction, murmur3_64, to_bytes
from .models import RangeMove, RingSnapshot
from .partitioning.quota_planner import QuotaPlanner
from .partitioning.range_grid import RangeGrid
from .partitioning.stream_allocator import DEFAULT_DRAW_LIMIT_FACTOR, StreamAllocator
from .streams import LaggedFibonacciStream, StreamFactory

logger = logging.getLogger(__name__)


class RingIndex:
    """Immutable range → node table with key lookup.

    Parameters:
        ids: Unique node ids.  Order does not matter; the ring sorts them.
        ranges: Number of ranges (Q), >= 1.
        seed: 32-bit unsigned seed for key hashing and node streams.
        hash_function: ``(seed, data) -> uint64``.  Defaults to MurmurHash3.
        stream_factory: Builds a node's stream from its 64-bit seed.
        draw_limit_factor: Per-range draw budget as a multiple of ``Q * N``.

    Raises:
        InvalidConfigurationError: On empty or duplicate ids, ``ranges < 1``
            or a seed outside ``[0, 2**32 - 1]``.
        AllocationExhaustedError: If the allocator runs out of draws.
    """

    __slots__ = ("_ids", "_seed", "_grid", "_allocations", "_hash_function")

    def __init__(
        self,
        ids: Iterable[str],
        ranges: int,
        seed: int,
        *,
        hash_function: HashFunction = murmur3_64,
        stream_factory: StreamFactory = LaggedFibonacciStream,
        draw_limit_factor: int = DEFAULT_DRAW_LIMIT_FACTOR,
    ) -> None:
        sorted_ids = _validate_ids(ids)
        if isinstance(seed, bool) or not isinstance(seed, int) or not 0 <= seed <= MAX_SEED:
            raise InvalidConfigurationError("seed", seed, f"seed must be in [0, {MAX_SEED}]")

        grid = RangeGrid(ranges)
        quotas = QuotaPlanner(ranges).plan(sorted_ids)
        node_seeds = {
            node_id: hash_function(seed, to_bytes(node_id)) for node_id in sorted_ids
        }
        result = StreamAllocator.from_seeds(
            ranges,
            quotas,
            node_seeds,
            stream_factory,
            draw_limit_factor,
        ).allocate()

        object.__setattr__(self, "_ids", tuple(sorted_ids))
        object.__setattr__(self, "_seed", seed)
        object.__setattr__(self, "_grid", grid)
        object.__setattr__(self, "_allocations", result.plan)
        object.__setattr__(self, "_hash_function", hash_function)

        logger.info(
            "Allocated %d ranges across %d nodes (seed=%d, draws=%d)",
            ranges,
            len(sorted_ids),
            seed,
            result.draws,
        )

    @classmethod
    def from_config(cls, config: RingConfig, **collaborators: Any) -> RingIndex:
        """Build a ring from a :class:`RingConfig`.

        Keyword arguments (``hash_function``, ``stream_factory``) are
        forwarded to the constructor.
        """
        return cls(
            config.ids,
            config.ranges,
            config.seed,
            draw_limit_factor=config.draw_limit_factor,
            **collaborators,
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    # ── Properties ────────────────────────────────────────────────

    @property
    def ids(self) -> tuple[str, ...]:
        return self._ids

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def range_count(self) -> int:
        return self._grid.range_count

    @property
    def range_width(self) -> int:
        return self._grid.width

    @property
    def upper_bounds(self) -> tuple[int, ...]:
        return self._grid.upper_bounds

    @property
    def allocations(self) -> tuple[str, ...]:
        """Owner of each range, indexed by range id."""
        return self._allocations

    # ── Lookup ────────────────────────────────────────────────────

    def hash(self, key: str | bytes) -> int:
        """Return the 64-bit hash of a key under this ring's seed."""
        return self._hash_function(self._seed, to_bytes(key))

    def range_for_key(self, key: str | bytes) -> int:
        """Return the range a key falls into."""
        return self._grid.locate(self.hash(key))

    def range_for_hash(self, value: int) -> int:
        """Return the range containing an already computed hash."""
        return self._grid.locate(value)

    def id_for_key(self, key: str | bytes) -> str:
        """Given a key, find the node responsible for it."""
        return self._allocations[self.range_for_key(key)]

    def ranges(self, node_id: str) -> list[int]:
        """Return all range ids owned by a node, ascending.

        Unknown nodes own nothing and get an empty list.
        """
        return [
            range_id for range_id, owner in enumerate(self._allocations)
            if owner == node_id
        ]

    def owner(self, range_id: int) -> str:
        """Return the node owning a range."""
        if not 0 <= range_id < self.range_count:
            raise UnknownRangeError(range_id, self.range_count)
        return self._allocations[range_id]

    def bounds(self, range_id: int) -> tuple[int, int]:
        """Return ``(lower, upper)`` key bounds of a range."""
        return self._grid.bounds(range_id)

    def ranges_by_node(self) -> dict[str, list[int]]:
        """Return node id → owned range ids, for every node in the ring."""
        plan: dict[str, list[int]] = {node_id: [] for node_id in self._ids}
        for range_id, owner in enumerate(self._allocations):
            plan[owner].append(range_id)
        return plan

    def key_distribution(self, keys: Iterable[str | bytes]) -> dict[str, int]:
        """Count how many of the given keys each node owns."""
        distribution = {node_id: 0 for node_id in self._ids}
        for key in keys:
            distribution[self.id_for_key(key)] += 1
        return distribution

    # ── Comparison ────────────────────────────────────────────────

    def diff(self, newer: RingIndex) -> list[RangeMove]:
        """List the ranges whose owner differs in ``newer``.

        Both rings must have the same range count; otherwise range ids
        do not describe the same slices of the key space.
        """
        if newer.range_count != self.range_count:
            raise InvalidConfigurationError(
                "ranges",
                newer.range_count,
                f"cannot compare rings with {self.range_count} and "
                f"{newer.range_count} ranges",
            )
        return [
            RangeMove(range_id=range_id, old_owner=old_owner, new_owner=new_owner)
            for range_id, (old_owner, new_owner) in enumerate(
                zip(self._allocations, newer.allocations)
            )
            if old_owner != new_owner
        ]

    def snapshot(self) -> RingSnapshot:
        """Return a serializable view of this ring."""
        return RingSnapshot(
            ids=list(self._ids),
            seed=self._seed,
            range_count=self.range_count,
            range_width=self.range_width,
            upper_bounds=list(self.upper_bounds),
            allocations=list(self._allocations),
        )

    def _identity(self) -> tuple[Any, ...]:
        return (self._ids, self._seed, self.range_count, self._allocations)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RingIndex):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __len__(self) -> int:
        return self.range_count

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._ids

    def __repr__(self) -> str:
        return (
            f"RingIndex(nodes={len(self._ids)}, ranges={self.range_count}, "
            f"seed={self._seed})"
        )


def _validate_ids(ids: Iterable[str]) -> list[str]:
    if isinstance(ids, (str, bytes)):
        raise InvalidConfigurationError("ids", ids, "expected a collection of node ids")

    node_ids = list(ids)
    if not node_ids:
        raise InvalidConfigurationError("ids", node_ids, "node list is empty")

    invalid = [node_id for node_id in node_ids if not isinstance(node_id, str)]
    if invalid:
        raise InvalidConfigurationError("ids", invalid, "node ids must be strings")

    if len(set(node_ids)) != len(node_ids):
        duplicates = sorted({n for n in node_ids if node_ids.count(n) > 1})
        raise InvalidConfigurationError("ids", duplicates, "node ids must be unique")

    return sorted(node_ids)
