"""Data models for the range ring.

All models use Pydantic for validation and serialization.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RingSnapshot(BaseModel):
    """Serializable view of a built ring — maps ranges to owners."""

    model_config = ConfigDict(frozen=True)

    ids: list[str]
    """Node ids in lexicographic order."""

    seed: int = Field(ge=0)
    """32-bit seed shared by the hash function and the node streams."""

    range_count: int = Field(ge=1)
    """Total number of ranges (Q)."""

    range_width: int = Field(ge=1)
    """Width of every range except possibly the last."""

    upper_bounds: list[int]
    """Upper bound of each range, ascending; the last equals the max key."""

    allocations: list[str]
    """Owner of each range, indexed by range id."""


class RangeMove(BaseModel):
    """A range whose owner differs between two rings."""

    model_config = ConfigDict(frozen=True)

    range_id: int = Field(ge=0)
    """The range number (0 to range_count - 1)."""

    old_owner: str
    """Owner in the older ring."""

    new_owner: str
    """Owner in the newer ring."""
