"""Stream allocator — assigns every range to exactly one node.

Each node owns a pseudorandom stream seeded from the hash of its id, so
any party holding the sorted id list, Q and the seed derives the same
streams without talking to anyone.  Ranges are settled in order:

1. In sorted order among the nodes that still need ranges, each node
   draws a value in ``[0, Q)``.  The first node to draw the current range
   id wins it.  Rounds repeat until somebody wins.
2. Every other remaining node keeps drawing until it, too, has produced
   the current range id once.  Afterwards all remaining streams sit just
   past their first hit of that range id.
3. A node that has reached its quota leaves the pool.

Because of step 2 a surviving node's stream position depends only on
which ranges have been settled, not on who won them.  Removing a node
and re-running therefore replays the same draws for the survivors up to
the first range the removed node used to win; mostly only the ranges it
owned change hands.

Streams are never reset between ranges.  Draws per range are bounded so
that a degenerate stream fails loudly instead of spinning forever.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..exceptions import AllocationExhaustedError, InvalidConfigurationError
from ..streams import RandomStream

logger = logging.getLogger(__name__)

# Per-range draw budget is this factor times Q times N
DEFAULT_DRAW_LIMIT_FACTOR = 64


@dataclass(frozen=True, slots=True)
class AllocationResult:
    """Outcome of one allocation run."""

    plan: tuple[str, ...]
    """Owner of each range, indexed by range id."""

    draws: int
    """Total number of values drawn from all streams."""


class StreamAllocator:
    """Quota-exact, stream-synchronized range assignment.

    Parameters:
        range_count: Number of ranges (Q).
        quotas: Node id → number of ranges to own.  Insertion order must
            be the lexicographic order of the ids.
        streams: Node id → that node's stream.  Consumed by
            :meth:`allocate`; build fresh streams for every run.
        draw_limit_factor: Per-range draw budget, as a multiple of
            ``Q * N``.
    """

    def __init__(
        self,
        range_count: int,
        quotas: dict[str, int],
        streams: dict[str, RandomStream],
        draw_limit_factor: int = DEFAULT_DRAW_LIMIT_FACTOR,
    ) -> None:
        if draw_limit_factor < 1:
            raise InvalidConfigurationError(
                "draw_limit_factor", draw_limit_factor, "must be >= 1"
            )
        missing = [node_id for node_id in quotas if node_id not in streams]
        if missing:
            raise InvalidConfigurationError(
                "streams", missing, "every node needs a stream"
            )
        if sum(quotas.values()) != range_count:
            raise InvalidConfigurationError(
                "quotas", dict(quotas), f"quotas must sum to {range_count}"
            )

        self._range_count = range_count
        self._quotas = dict(quotas)
        self._streams = streams
        self._draw_limit = draw_limit_factor * range_count * len(quotas)

    @classmethod
    def from_seeds(
        cls,
        range_count: int,
        quotas: dict[str, int],
        seeds: dict[str, int],
        stream_factory: Callable[[int], RandomStream],
        draw_limit_factor: int = DEFAULT_DRAW_LIMIT_FACTOR,
    ) -> StreamAllocator:
        """Build an allocator whose streams come from per-node seeds."""
        streams = {node_id: stream_factory(seeds[node_id]) for node_id in quotas}
        return cls(range_count, quotas, streams, draw_limit_factor)

    @property
    def draw_limit(self) -> int:
        """Maximum draws allowed while settling a single range."""
        return self._draw_limit

    def allocate(self) -> AllocationResult:
        """Assign every range and return the plan.

        Raises:
            AllocationExhaustedError: If a range cannot be settled within
                the draw budget.
        """
        ids = list(self._quotas)
        streams = [self._streams[node_id] for node_id in ids]
        quotas = [self._quotas[node_id] for node_id in ids]
        matched = [0] * len(ids)
        # Tombstones keep sorted order intact for the first-hit tie-break
        active = [quota > 0 for quota in quotas]

        plan: list[str] = []
        total_draws = 0

        for range_id in range(self._range_count):
            if not any(active):
                raise AllocationExhaustedError(
                    range_id, 0, "no node has quota left"
                )

            winner, draws = self._settle(range_id, streams, active)
            total_draws += draws

            matched[winner] += 1
            if matched[winner] >= quotas[winner]:
                active[winner] = False

            plan.append(ids[winner])
            logger.debug(
                "Range %d -> %s after %d draws", range_id, ids[winner], draws
            )

        return AllocationResult(plan=tuple(plan), draws=total_draws)

    # ── Internal ──────────────────────────────────────────────────

    def _settle(
        self,
        range_id: int,
        streams: list[RandomStream],
        active: list[bool],
    ) -> tuple[int, int]:
        """Find the owner of one range, then synchronize the others.

        Returns:
            ``(winner_index, draws_used)``.
        """
        q = self._range_count
        draws = 0
        winner = -1

        while winner < 0:
            for idx, stream in enumerate(streams):
                if not active[idx]:
                    continue
                draws += 1
                if stream.intn(q) == range_id:
                    winner = idx
                    break
            if winner < 0 and draws > self._draw_limit:
                self._exhausted(range_id, draws, "no node drew the range id")

        for idx, stream in enumerate(streams):
            if idx == winner or not active[idx]:
                continue
            while True:
                draws += 1
                if stream.intn(q) == range_id:
                    break
                if draws > self._draw_limit:
                    self._exhausted(range_id, draws, "stream synchronization stalled")

        return winner, draws

    def _exhausted(self, range_id: int, draws: int, reason: str) -> None:
        logger.error(
            "Giving up on range %d after %d draws (limit %d): %s",
            range_id,
            draws,
            self._draw_limit,
            reason,
        )
        raise AllocationExhaustedError(range_id, draws, reason)
