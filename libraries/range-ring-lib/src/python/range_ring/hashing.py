"""Key hashing for the range ring.

Any function with the signature ``(seed, data) -> int`` returning a value
in ``[0, MAX_HASH_VALUE]`` can be injected into a ring.  The default is
MurmurHash3 (x64, 128-bit variant) truncated to its first 64-bit word,
which is also what the common ``Sum64WithSeed`` helpers return.
"""

from __future__ import annotations

from typing import Callable

import mmh3

# Largest value in the 64-bit key space (inclusive)
MAX_HASH_VALUE = (1 << 64) - 1
# Seeds are 32-bit unsigned integers
MAX_SEED = (1 << 32) - 1

HashFunction = Callable[[int, bytes], int]


def murmur3_64(seed: int, data: bytes) -> int:
    """Return the unsigned 64-bit MurmurHash3 of ``data``."""
    return mmh3.hash64(data, seed, signed=False)[0]


def to_bytes(key: str | bytes) -> bytes:
    """Encode a lookup key the same way on every node."""
    if isinstance(key, bytes):
        return key
    return key.encode("utf-8")
