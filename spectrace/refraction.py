"""
Refractive index models and the optics of a single interface.

Implements:
- Absolute refractive indices (constant and Cauchy dispersion)
- Named media as plain instances of the general formulas
- Fresnel reflectance and Snell refraction for a pair of indices
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
import math

from .colorimetry import MIN_WAVELENGTH, MAX_WAVELENGTH
from .exceptions import InvalidScene
from .vec3 import Vec3


class AbsoluteRefractiveIndex(ABC):
    """Dimensionless refractive index as a function of wavelength."""

    @abstractmethod
    def at(self, wavelength: float) -> float:
        """Evaluate the index at the given wavelength (metres)."""
        pass


def _require_finite(owner: str, **values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidScene(f"{owner}: `{name}` must be a finite number, got {value!r}")


def _require_positive_in_range(owner: str, index: AbsoluteRefractiveIndex, stationary: Iterable[float] = ()) -> None:
    """Check that the index is positive over the whole traced wavelength range.

    Cauchy formulas are polynomials in 1/λ², so their minimum over the range
    lies at one of its ends or at a stationary wavelength inside it.

    Args:
        owner: Name used in the error message
        index: The index to check
        stationary: Wavelengths where dn/dλ = 0
    """
    candidates = [MIN_WAVELENGTH, MAX_WAVELENGTH]
    candidates.extend(w for w in stationary if MIN_WAVELENGTH < w < MAX_WAVELENGTH)
    for wavelength in candidates:
        value = index.at(wavelength)
        if not value > 0.0:
            raise InvalidScene(
                f"{owner} must be positive between {MIN_WAVELENGTH * 1e9:.0f} and "
                f"{MAX_WAVELENGTH * 1e9:.0f} nm, got {value!r} at {wavelength * 1e9:.1f} nm"
            )


@dataclass(frozen=True)
class ConstantIndex(AbsoluteRefractiveIndex):
    index: float

    def __post_init__(self):
        _require_finite("Constant refractive index", index=self.index)
        if self.index <= 0.0:
            raise InvalidScene(f"Constant refractive index must be positive, got {self.index!r}")

    def at(self, wavelength: float) -> float:
        return self.index


@dataclass(frozen=True)
class Cauchy2(AbsoluteRefractiveIndex):
    """Two-term Cauchy equation: n(λ) = a + b/λ².

    See https://en.wikipedia.org/wiki/Cauchy%27s_equation.
    """
    a: float
    b: float

    def __post_init__(self):
        _require_finite("Cauchy2 refractive index", a=self.a, b=self.b)
        if self.a <= 0.0:
            raise InvalidScene(f"Cauchy2 refractive index: `a` must be positive, got {self.a!r}")
        _require_positive_in_range("Cauchy2 refractive index", self)

    def at(self, wavelength: float) -> float:
        return self.a + self.b / (wavelength * wavelength)


@dataclass(frozen=True)
class Cauchy4(AbsoluteRefractiveIndex):
    """Four-term Cauchy equation: n(λ) = a + b/λ² + c/λ⁴ + d/λ⁶."""
    a: float
    b: float
    c: float
    d: float

    def __post_init__(self):
        _require_finite("Cauchy4 refractive index", a=self.a, b=self.b, c=self.c, d=self.d)
        if self.a <= 0.0:
            raise InvalidScene(f"Cauchy4 refractive index: `a` must be positive, got {self.a!r}")
        _require_positive_in_range("Cauchy4 refractive index", self, self._stationary_wavelengths())

    def at(self, wavelength: float) -> float:
        inverse_squared = 1.0 / (wavelength * wavelength)
        # Horner's scheme in 1/λ²
        return self.a + inverse_squared * (self.b + inverse_squared * (self.c + inverse_squared * self.d))

    def _stationary_wavelengths(self) -> List[float]:
        """Wavelengths where b + 2cu + 3du² = 0, with u = 1/λ²."""
        if self.d != 0.0:
            discriminant = self.c * self.c - 3.0 * self.b * self.d
            if discriminant < 0.0:
                return []
            root = math.sqrt(discriminant)
            roots = [(-self.c + root) / (3.0 * self.d), (-self.c - root) / (3.0 * self.d)]
        elif self.c != 0.0:
            roots = [-self.b / (2.0 * self.c)]
        else:
            roots = []
        return [1.0 / math.sqrt(u) for u in roots if u > 0.0]


VACUUM = ConstantIndex(1.0)

# Bashkatov & Genina, "Water refractive index in dependence on temperature
# and wavelength: a simple approximation", Proc. SPIE 5068 (2003).
WATER = Cauchy4(a=1.3199, b=6878e-18, c=-1.132e-27, d=1.11e-40)

# https://en.wikipedia.org/wiki/Fused_quartz
FUSED_QUARTZ = Cauchy2(a=1.4580, b=3.54e-15)

NAMED_MEDIA: Dict[str, AbsoluteRefractiveIndex] = {
    'Vacuum': VACUUM,
    'Water': WATER,
    'FusedQuartz': FUSED_QUARTZ,
    'FusedSilica': FUSED_QUARTZ,
    'QuartzGlass': FUSED_QUARTZ,
}


@dataclass(frozen=True)
class RelativeRefractiveIndex:
    """Pair of absolute indices on both sides of an interface.

    ``incident`` is the index of the medium the ray travels in,
    ``refracted`` the index of the medium it would enter.
    """
    incident: float
    refracted: float

    @classmethod
    def at_interface(
        cls,
        incident_index: AbsoluteRefractiveIndex,
        refracted_index: AbsoluteRefractiveIndex,
        wavelength: float,
        entering: bool,
    ) -> RelativeRefractiveIndex:
        """Evaluate both indices at ``wavelength``, swapped when leaving the body."""
        outside = incident_index.at(wavelength)
        inside = refracted_index.at(wavelength)
        if entering:
            return cls(outside, inside)
        return cls(inside, outside)

    @property
    def relative(self) -> float:
        return self.incident / self.refracted

    def sin_refracted_squared(self, cos_incident: float) -> float:
        """sin²θ₂ from Snell's law; values above 1 mean total internal reflection."""
        eta = self.relative
        return eta * eta * max(0.0, 1.0 - cos_incident * cos_incident)

    def is_total_internal_reflection(self, cos_incident: float) -> bool:
        return self.sin_refracted_squared(cos_incident) > 1.0

    def reflectance(self, cos_incident: float) -> float:
        """Unpolarized Fresnel reflectance, the mean of the s and p terms.

        See https://en.wikipedia.org/wiki/Fresnel_equations. Returns 1 under
        total internal reflection.
        """
        cos_incident = min(max(cos_incident, 0.0), 1.0)
        sin_t2 = self.sin_refracted_squared(cos_incident)
        if sin_t2 >= 1.0:
            return 1.0
        cos_t = math.sqrt(1.0 - sin_t2)

        n1 = self.incident
        n2 = self.refracted
        r_s = (n1 * cos_incident - n2 * cos_t) / (n1 * cos_incident + n2 * cos_t)
        r_p = (n1 * cos_t - n2 * cos_incident) / (n1 * cos_t + n2 * cos_incident)
        return 0.5 * (r_s * r_s + r_p * r_p)

    def refract(self, direction: Vec3, normal: Vec3) -> Optional[Vec3]:
        """Refract a unit ``direction`` through the interface (Snell's law, vector form).

        ``normal`` must be a unit vector pointing against ``direction``.
        Returns None under total internal reflection.
        """
        cos_incident = min(-direction.dot(normal), 1.0)
        sin_t2 = self.sin_refracted_squared(cos_incident)
        if sin_t2 > 1.0:
            return None
        cos_t = math.sqrt(1.0 - sin_t2)
        eta = self.relative
        return direction * eta + normal * (eta * cos_incident - cos_t)
