"""Multilinear hashing for geometric points and patterns."""

from __future__ import annotations

import struct
import threading
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Iterable

_DOUBLE = struct.Struct("<d")
_INT64 = struct.Struct("<q")

_MASK_64 = (1 << 64) - 1
_MASK_32 = (1 << 32) - 1


def _float_bits(value: float) -> int:
    """Return the raw IEEE 754 bits of a float as a signed 64-bit integer."""
    return _INT64.unpack(_DOUBLE.pack(value))[0]


def _to_signed(value: int, bits: int) -> int:
    sign_bit = 1 << (bits - 1)
    return value - (1 << bits) if value & sign_bit else value


class HashContext:
    """Random multipliers for hashing points and patterns.

    Implements the Multilinear family of hash functions (Lemire and Kaser,
    "Strongly Universal String Hashing is Fast", 2014). Every component's raw
    64-bit representation is split into two signed 32-bit halves, each half is
    multiplied by its own random 64-bit multiplier and the products are summed
    together with a random offset.

    The multipliers are drawn once per context and are not reproducible across
    runs unless a seed is given. Hash values must never be persisted.

    The table grows on demand when longer component sequences are hashed
    (patterns with many points). Growth replaces the table under a lock, so
    concurrent readers always see a complete table.
    """

    INITIAL_SIZE = 100
    INCREMENT = 50

    def __init__(self, seed: int | None = None, size: int = INITIAL_SIZE) -> None:
        """Initialize the context.

        Args:
            seed: Optional seed for reproducible multipliers (tests only).
            size: Number of multipliers to generate up front.
        """
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()
        self._multipliers: tuple[int, ...] = tuple(self._generate(max(size, 1)))

    def _generate(self, count: int) -> list[int]:
        info = np.iinfo(np.int64)
        values = self._rng.integers(info.min, info.max, size=count, dtype=np.int64, endpoint=True)
        return [int(v) for v in values]

    def __len__(self) -> int:
        return len(self._multipliers)

    def multiplier(self, index: int) -> int:
        """Get the multiplier at an index, growing the table if needed.

        The same index always returns the same multiplier within a context.

        Args:
            index: Non-negative multiplier index.

        Returns:
            Signed 64-bit multiplier.
        """
        multipliers = self._multipliers
        if index < len(multipliers):
            return multipliers[index]

        with self._lock:
            while len(self._multipliers) <= index:
                self._multipliers = self._multipliers + tuple(self._generate(self.INCREMENT))
            return self._multipliers[index]

    def _ensure(self, count: int) -> tuple[int, ...]:
        if count > len(self._multipliers):
            self.multiplier(count - 1)
        return self._multipliers

    def hash_components(self, components: Iterable[float]) -> int:
        """Hash a sequence of float components.

        Args:
            components: Components to hash, already rounded where rounding applies.

        Returns:
            Signed 64-bit hash value.
        """
        values = tuple(components)
        multipliers = self._ensure(2 * len(values) + 1)

        total = multipliers[0]
        index = 1
        for value in values:
            bits = _float_bits(value)
            high = bits >> 32
            low = _to_signed(bits & _MASK_32, 32)
            total += high * multipliers[index] + low * multipliers[index + 1]
            index += 2

        return _to_signed(total & _MASK_64, 64)


_default_context: HashContext | None = None
_default_lock = threading.Lock()


def default_hash_context() -> HashContext:
    """Get the process-wide context used when none is injected.

    Created lazily on first use.
    """
    global _default_context
    if _default_context is None:
        with _default_lock:
            if _default_context is None:
                _default_context = HashContext()
    return _default_context
