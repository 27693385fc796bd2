"""Fixed-width Bloom filters backed by a numpy bit array.

Each of the ``k`` hash functions is BLAKE2b salted with its own index, so
bit positions are stable across processes (unlike the builtin ``hash``).
"""

from __future__ import annotations

import hashlib

import numpy as np

DEFAULT_FILTER_SIZE = 256
DEFAULT_HASH_COUNT = 4


def bit_positions(value: str, size: int, hash_count: int) -> list[int]:
    """Return the ``hash_count`` bit positions that *value* sets in a filter of *size* bits."""
    data = value.encode("utf-8")
    positions = []
    for i in range(hash_count):
        digest = hashlib.blake2b(data, digest_size=8, salt=i.to_bytes(16, "little")).digest()
        positions.append(int.from_bytes(digest, "big") % size)
    return positions


class BloomFilter:
    """A Bloom filter of ``size`` bits with ``hash_count`` hash functions.

    ``insert`` is the only mutation; bits are never cleared.
    """

    def __init__(self, size: int = DEFAULT_FILTER_SIZE, hash_count: int = DEFAULT_HASH_COUNT):
        if size <= 0:
            raise ValueError("size must be positive")
        if hash_count <= 0:
            raise ValueError("hash_count must be positive")
        self.size = size
        self.hash_count = hash_count
        self._bits = np.zeros(size, dtype=np.uint8)

    def insert(self, value: str) -> None:
        self._bits[bit_positions(value, self.size, self.hash_count)] = 1

    def __contains__(self, value: str) -> bool:
        return bool(self._bits[bit_positions(value, self.size, self.hash_count)].all())

    @property
    def bits(self) -> np.ndarray:
        """Read-only view of the bit array."""
        view = self._bits.view()
        view.flags.writeable = False
        return view

    def count(self) -> int:
        """Number of set bits."""
        return int(self._bits.sum())

    def to_bit_string(self) -> str:
        return "".join("1" if b else "0" for b in self._bits)

    @classmethod
    def from_bit_string(cls, bits: str, hash_count: int = DEFAULT_HASH_COUNT) -> BloomFilter:
        """Rebuild a filter from the output of :meth:`to_bit_string`."""
        if not bits or set(bits) - {"0", "1"}:
            raise ValueError(f"not a bit string: {bits!r}")
        bloom = cls(len(bits), hash_count)
        bloom._bits[:] = [c == "1" for c in bits]
        return bloom

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return self.size == other.size and bool(np.array_equal(self._bits, other._bits))

    def __repr__(self) -> str:
        return f"BloomFilter(size={self.size}, hash_count={self.hash_count}, set_bits={self.count()})"
