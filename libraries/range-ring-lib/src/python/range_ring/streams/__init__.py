"""Per-node pseudorandom streams used by the allocator."""

from __future__ import annotations

from typing import Callable, Protocol

from .lagged_fibonacci import LaggedFibonacciStream
from .pcg64 import Pcg64Stream


class RandomStream(Protocol):
    """A continuous stream of uniform integers."""

    def intn(self, n: int) -> int:
        """Return the next value, uniform over ``[0, n)``."""
        ...


# Builds a stream from a node's unsigned 64-bit seed
StreamFactory = Callable[[int], RandomStream]

__all__ = [
    "LaggedFibonacciStream",
    "Pcg64Stream",
    "RandomStream",
    "StreamFactory",
]
