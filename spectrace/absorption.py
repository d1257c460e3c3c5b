"""
Linear attenuation coefficients for light travelling inside a body.

See https://en.wikipedia.org/wiki/Attenuation_coefficient. A coefficient μ
(in m⁻¹) dims a ray that travelled ``d`` metres by ``exp(-μ·d)``.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import math

from .exceptions import InvalidScene


class AttenuationCoefficient(ABC):
    """Absorption coefficient as a function of wavelength."""

    @abstractmethod
    def at(self, wavelength: float) -> float:
        """Coefficient in m⁻¹ at the given wavelength (metres)."""
        pass

    def transmission(self, wavelength: float, distance: float) -> float:
        """Fraction of light left after ``distance`` metres (Beer-Lambert law)."""
        coefficient = self.at(wavelength)
        if coefficient == 0.0:
            return 1.0
        return math.exp(-coefficient * distance)


@dataclass(frozen=True)
class ConstantCoefficient(AttenuationCoefficient):
    coefficient: float

    def __post_init__(self):
        if not math.isfinite(self.coefficient) or self.coefficient < 0.0:
            raise InvalidScene(
                f"Constant attenuation coefficient must be non-negative, got {self.coefficient!r}"
            )

    def at(self, wavelength: float) -> float:
        return self.coefficient


@dataclass(frozen=True)
class WaterCoefficient(AttenuationCoefficient):
    """Empirical fit of water absorption in the visible range.

    Roughly one decade per 133 nm, anchored at 450 nm, after
    https://en.wikipedia.org/wiki/Electromagnetic_absorption_by_water.
    """
    scale: float

    ANCHOR = 450e-9
    DECADE = 133.3e-9

    def __post_init__(self):
        if not math.isfinite(self.scale) or self.scale < 0.0:
            raise InvalidScene(f"Water attenuation coefficient: `scale` must be non-negative, got {self.scale!r}")

    def at(self, wavelength: float) -> float:
        return self.scale * 10.0 ** ((wavelength - self.ANCHOR) / self.DECADE)


ZERO_COEFFICIENT = ConstantCoefficient(0.0)
