"""
Seeded pseudo-random source shared by every generator.

Mulberry32: a 32-bit state advanced by a fixed odd increment and mixed
with two multiply/xorshift rounds. All arithmetic is masked to 32 bits,
so the same seed and call order give the same stream on every platform.
"""

from __future__ import annotations

import math
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar("T")

_MASK = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _uint32(n: int) -> int:
    """Convert to unsigned 32-bit integer."""
    return n & _MASK


class Random:
    """
    Deterministic random number generator seeded by a single integer.

    Never reads wall-clock time or system entropy; two instances with the
    same seed produce bit-identical sequences for identical call orders.
    """

    def __init__(self, seed: int):
        self.seed = int(seed)
        self.state = _uint32(self.seed)
        self.call_count = 0

    def float(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        self.state = _uint32(self.state + _INCREMENT)
        t = self.state
        t = _uint32((t ^ (t >> 15)) * (t | 1))
        t ^= _uint32(t + _uint32((t ^ (t >> 7)) * (t | 61)))
        return (t ^ (t >> 14)) / _TWO_POW_32

    def int(self, max_value: float) -> int:
        """Random integer in [0, max_value)."""
        return math.floor(self.float() * max_value)

    def range(self, min_value: float, max_value: float) -> float:
        """Random float in [min_value, max_value)."""
        return min_value + self.float() * (max_value - min_value)

    def bool(self, probability: float = 0.5) -> bool:
        """True with the given probability."""
        return self.float() < probability

    def pick(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.int(len(seq))]

    def shuffle(self, seq: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates shuffle in place; returns the same sequence."""
        for i in range(len(seq) - 1, 0, -1):
            j = self.int(i + 1)
            seq[i], seq[j] = seq[j], seq[i]
        return seq

    def gaussian(self, mean: float = 0.0, std_dev: float = 1.0) -> float:
        """Normally distributed value (Box-Muller over two fresh draws)."""
        # 0 is a legal draw; log(0) is not
        u1 = self.float() or 1.0 / _TWO_POW_32
        u2 = self.float()
        z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return mean + z * std_dev
