"""Quota planner — how many ranges each node must end up owning."""

from __future__ import annotations

import logging

from ..exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


class QuotaPlanner:
    """Fair division of Q ranges over N sorted node ids.

    Every node gets ``Q // N`` ranges; the first ``Q % N`` nodes in sorted
    order get one extra.  Independent callers holding the same sorted list
    therefore break ties the same way.

    Parameters:
        range_count: Total number of ranges (Q).
    """

    def __init__(self, range_count: int) -> None:
        self._range_count = range_count

    def plan(self, sorted_ids: list[str]) -> dict[str, int]:
        """Compute the quota of every node.

        Args:
            sorted_ids: Node ids in lexicographic order.

        Returns:
            Dict mapping node id → number of ranges it must own.  The
            values always sum to Q.
        """
        if not sorted_ids:
            raise InvalidConfigurationError("ids", sorted_ids, "node list is empty")

        base, remainder = divmod(self._range_count, len(sorted_ids))
        quotas = {
            node_id: base + 1 if position < remainder else base
            for position, node_id in enumerate(sorted_ids)
        }

        if base == 0:
            logger.warning(
                "%d nodes share only %d ranges; %d nodes will own nothing",
                len(sorted_ids),
                self._range_count,
                len(sorted_ids) - remainder,
            )
        return quotas
