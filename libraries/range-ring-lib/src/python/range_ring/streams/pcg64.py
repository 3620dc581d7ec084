"""PCG64-backed stream.

An alternative to :class:`LaggedFibonacciStream` for clusters that do not
need to agree with rings built by existing deployments.  PCG64 has a
published reference output and numpy keeps its bit stream stable, so
every party holding the same node id and seed sees the same draws.
"""

from __future__ import annotations

import numpy as np

_MASK64 = (1 << 64) - 1


class Pcg64Stream:
    """Uniform integer stream driven by ``numpy.random.PCG64``.

    Parameters:
        seed: Unsigned 64-bit seed, usually the hash of a node id.
    """

    __slots__ = ("_bits",)

    def __init__(self, seed: int) -> None:
        self._bits = np.random.PCG64(seed & _MASK64)

    def intn(self, n: int) -> int:
        """Return a uniform integer in ``[0, n)``.

        Rejection-samples raw 64-bit outputs rather than delegating to
        ``Generator.integers``, whose bounded-integer algorithm is not
        covered by numpy's stream compatibility policy.
        """
        if n <= 0:
            raise ValueError("n must be >= 1")

        limit = (1 << 64) - (1 << 64) % n
        while True:
            v = int(self._bits.random_raw())
            if v < limit:
                return v % n
