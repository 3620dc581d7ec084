"""Additive lagged Fibonacci stream (Mitchell/Reeds, lags 607 and 273).

Every node's stream must be reproducible from its 64-bit seed alone, on
any machine and in any process.  This generator has a fully specified
seeding procedure and output sequence:

* the seed is reduced modulo ``2**31 - 1`` (zero maps to ``89482311``)
  and expanded with the Park-Miller ``x * 48271 mod (2**31 - 1)`` step;
* each of the 607 feedback words is built from three expansion steps
  XOR-ed with a fixed seed table word;
* each output adds the word 273 positions back onto the current word.

``intn`` uses rejection sampling over 31-bit outputs so that every value
in ``[0, n)`` is exactly equally likely.
"""

from __future__ import annotations

from ._seed_table import SEED_TABLE

_LENGTH = 607
_TAP = 273
_MASK64 = (1 << 64) - 1
_MASK63 = (1 << 63) - 1
_INT32_MAX = (1 << 31) - 1
# Substitute for a seed that reduces to zero
_ZERO_SEED = 89482311

_SEED_WORDS = tuple(word & _MASK64 for word in SEED_TABLE)


def _seed_step(x: int) -> int:
    # x[n+1] = 48271 * x[n] mod (2**31 - 1), Schrage's method
    hi, lo = divmod(x, 44488)
    x = 48271 * lo - 3399 * hi
    if x < 0:
        x += _INT32_MAX
    return x


class LaggedFibonacciStream:
    """Deterministic uniform integer stream seeded from a 64-bit value.

    Parameters:
        seed: Unsigned 64-bit seed, usually the hash of a node id.
            Values at or above ``2**63`` are read as two's-complement
            negatives before reduction.
    """

    __slots__ = ("_vec", "_tap", "_feed")

    def __init__(self, seed: int) -> None:
        seed &= _MASK64
        if seed >= 1 << 63:
            seed -= 1 << 64

        seed %= _INT32_MAX
        if seed == 0:
            seed = _ZERO_SEED

        vec = [0] * _LENGTH
        x = seed
        for i in range(-20, _LENGTH):
            x = _seed_step(x)
            if i >= 0:
                u = x << 40
                x = _seed_step(x)
                u ^= x << 20
                x = _seed_step(x)
                u ^= x
                vec[i] = (u ^ _SEED_WORDS[i]) & _MASK64

        self._vec = vec
        self._tap = 0
        self._feed = _LENGTH - _TAP

    def uint64(self) -> int:
        """Return the next raw 64-bit output."""
        self._tap -= 1
        if self._tap < 0:
            self._tap += _LENGTH
        self._feed -= 1
        if self._feed < 0:
            self._feed += _LENGTH

        x = (self._vec[self._feed] + self._vec[self._tap]) & _MASK64
        self._vec[self._feed] = x
        return x

    def int63(self) -> int:
        return self.uint64() & _MASK63

    def int31(self) -> int:
        return self.int63() >> 32

    def intn(self, n: int) -> int:
        """Return a uniform integer in ``[0, n)``."""
        if n <= 0:
            raise ValueError("n must be >= 1")
        if n > _INT32_MAX:
            return self._int63n(n)
        if n & (n - 1) == 0:
            return self.int31() & (n - 1)

        limit = _INT32_MAX - (1 << 31) % n
        v = self.int31()
        while v > limit:
            v = self.int31()
        return v % n

    def _int63n(self, n: int) -> int:
        if n & (n - 1) == 0:
            return self.int63() & (n - 1)

        limit = _MASK63 - (1 << 63) % n
        v = self.int63()
        while v > limit:
            v = self.int63()
        return v % n
