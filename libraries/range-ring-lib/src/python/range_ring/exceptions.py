"""Exception hierarchy for the range ring."""

from __future__ import annotations

from typing import Any


class RangeRingError(Exception):
    """Base exception for all range ring errors."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


# ── Configuration Errors ──────────────────────────────────────────

class InvalidConfigurationError(RangeRingError):
    """Raised when a ring is requested with unusable parameters.

    Always raised before any allocation work begins.
    """

    def __init__(self, field: str, value: Any = None, reason: str = "") -> None:
        self.field = field
        self.value = value
        msg = f"Invalid ring configuration for '{field}'."
        if reason:
            msg += f" Reason: {reason}"
        super().__init__(msg)


# ── Allocation Errors ─────────────────────────────────────────────

class AllocationExhaustedError(RangeRingError):
    """Raised when the allocator exceeds its draw budget for a range."""

    def __init__(self, range_id: int, draws: int, reason: str = "") -> None:
        self.range_id = range_id
        self.draws = draws
        msg = f"Allocation of range {range_id} gave up after {draws} draws."
        if reason:
            msg += f" Reason: {reason}"
        super().__init__(msg)


# ── Lookup Errors ─────────────────────────────────────────────────

class LookupBoundaryError(RangeRingError):
    """Raised when a hash value cannot be placed in any range.

    Indicates a broken hash function or a corrupted ring, never a
    normal lookup outcome.
    """

    def __init__(self, value: int, reason: str = "") -> None:
        self.value = value
        msg = f"Hash value {value} falls outside every range."
        if reason:
            msg += f" Reason: {reason}"
        super().__init__(msg)


class UnknownRangeError(RangeRingError):
    """Raised when a range id outside ``0..Q-1`` is requested."""

    def __init__(self, range_id: int, range_count: int) -> None:
        self.range_id = range_id
        self.range_count = range_count
        super().__init__(
            f"Range {range_id} does not exist (ring has {range_count} ranges)."
        )
