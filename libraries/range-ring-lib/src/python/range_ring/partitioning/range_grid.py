"""Range grid — splits the 64-bit key space into Q contiguous ranges.

The number of ranges is fixed for the lifetime of a cluster.  It does
NOT change when nodes join or leave; only range *ownership* changes.

Given ``width = MAXV // Q`` the upper bounds look like::

    upper = [w, 2w, 3w, ..., (Q-1)w, MAXV]

which means range 0 is ``[0, w)``, range 1 is ``[w, 2w)`` and the last
range is ``[(Q-1)w, MAXV]``.  The last range absorbs the division
remainder so that every key has exactly one home.
"""

from __future__ import annotations

import bisect

from ..exceptions import InvalidConfigurationError, LookupBoundaryError, UnknownRangeError
from ..hashing import MAX_HASH_VALUE


class RangeGrid:
    """Ordered upper-bound table for Q equal-width ranges.

    Parameters:
        range_count: Number of ranges (Q).  Must be >= 1.
        max_value: Largest key in the space, inclusive.
    """

    __slots__ = ("_range_count", "_max_value", "_width", "_upper_bounds")

    def __init__(self, range_count: int, max_value: int = MAX_HASH_VALUE) -> None:
        if isinstance(range_count, bool) or not isinstance(range_count, int):
            raise InvalidConfigurationError(
                "ranges", range_count, "range count must be an integer"
            )
        if range_count < 1:
            raise InvalidConfigurationError(
                "ranges", range_count, "range count must be >= 1"
            )
        if range_count > max_value:
            raise InvalidConfigurationError(
                "ranges", range_count, f"range count must be <= {max_value}"
            )

        width = max_value // range_count
        upper_bounds = [(i + 1) * width for i in range(range_count - 1)]
        upper_bounds.append(max_value)

        self._range_count = range_count
        self._max_value = max_value
        self._width = width
        self._upper_bounds = tuple(upper_bounds)

    # ── Properties ────────────────────────────────────────────────

    @property
    def range_count(self) -> int:
        return self._range_count

    @property
    def max_value(self) -> int:
        return self._max_value

    @property
    def width(self) -> int:
        return self._width

    @property
    def upper_bounds(self) -> tuple[int, ...]:
        return self._upper_bounds

    # ── Query ─────────────────────────────────────────────────────

    def bounds(self, range_id: int) -> tuple[int, int]:
        """Return ``(lower, upper)`` for a range.

        ``upper`` is exclusive, except for the last range where it equals
        ``max_value`` and is inclusive.
        """
        if not 0 <= range_id < self._range_count:
            raise UnknownRangeError(range_id, self._range_count)
        lower = self._upper_bounds[range_id - 1] if range_id > 0 else 0
        return lower, self._upper_bounds[range_id]

    def locate(self, value: int) -> int:
        """Return the index of the range containing ``value``.

        Raises:
            LookupBoundaryError: If ``value`` lies outside the key space.
        """
        if not 0 <= value <= self._max_value:
            raise LookupBoundaryError(value, f"key space is [0, {self._max_value}]")

        # First bound strictly greater than value
        idx = bisect.bisect_right(self._upper_bounds, value)
        if idx == self._range_count and value == self._max_value:
            return self._range_count - 1
        if idx >= self._range_count:
            raise LookupBoundaryError(value, "search fell off the upper-bound table")
        return idx
