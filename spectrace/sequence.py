"""
Low-discrepancy sequences for stratified sampling.

Pixel samples use them to spread sub-pixel positions and hero wavelengths
evenly; a random per-pixel offset (Cranley-Patterson rotation) keeps
neighbouring pixels decorrelated.
"""

from __future__ import annotations
from typing import Tuple


def radical_inverse(index: int, base: int) -> float:
    """Mirror the base-``base`` digits of ``index`` around the radix point."""
    result = 0.0
    fraction = 1.0 / base
    while index > 0:
        index, digit = divmod(index, base)
        result += digit * fraction
        fraction /= base
    return result


class VanDerCorput:
    """Van der Corput sequence: 1/2, 1/4, 3/4, 1/8, ... for base 2.

    See https://en.wikipedia.org/wiki/Van_der_Corput_sequence.
    """

    def __init__(self, base: int = 2, offset: float = 0.0):
        if base < 2:
            raise ValueError(f"base must be at least 2, got {base}")
        self.base = base
        self.offset = offset
        self._index = 0

    def __iter__(self):
        return self

    def __next__(self) -> float:
        self._index += 1
        return (radical_inverse(self._index, self.base) + self.offset) % 1.0


class Halton2:
    """Two-dimensional Halton sequence built from two coprime Van der Corput bases."""

    def __init__(self, base_1: int = 5, base_2: int = 3, offset: Tuple[float, float] = (0.0, 0.0)):
        if base_1 == base_2:
            raise ValueError("different bases are expected")
        self._first = VanDerCorput(base_1, offset[0])
        self._second = VanDerCorput(base_2, offset[1])

    def __iter__(self):
        return self

    def __next__(self) -> Tuple[float, float]:
        return next(self._first), next(self._second)
