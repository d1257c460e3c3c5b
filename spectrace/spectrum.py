"""
Spectral distributions: functions of wavelength.

Two families live here:
- Attenuation: dimensionless spectra (surface colour, inner body colour)
- Emittance: spectral radiance sources (lamps, the sky, hot bodies)

Wavelengths are in metres. Radiance is spectral radiance per unit wavelength,
W·sr⁻¹·m⁻³, for every emittance variant. Black-body radiance is Planck's law
taken as-is (``BLACK_BODY_SCALE`` = 1), so a ``ConstantEmittance`` of
``2.6e13`` is about as bright as the Sun's surface in the middle of the
visible range. The renderer normalizes exposure at the very end.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple
import math

from .exceptions import InvalidScene

# https://en.wikipedia.org/wiki/Speed_of_light
LIGHT_SPEED = 299_792_458.0

# https://en.wikipedia.org/wiki/Planck_constant
PLANCK = 6.62607015e-34

# https://en.wikipedia.org/wiki/Boltzmann_constant
BOLTZMANN = 1.380649e-23

# https://en.wikipedia.org/wiki/Wien%27s_displacement_law
WIEN = 2.897771955e-3

BLACK_BODY_SCALE = 1.0


def lorentzian(wavelength: float, maximum_at: float, full_width_at_half_maximum: float) -> float:
    """Unit-peak Lorentzian line shape.

    See https://en.wikipedia.org/wiki/Spectral_line_shape#Lorentzian.
    Equals 1 at ``maximum_at`` and 1/2 at ``maximum_at ± fwhm / 2``.
    """
    half_width = 0.5 * full_width_at_half_maximum
    offset = wavelength - maximum_at
    return half_width * half_width / (offset * offset + half_width * half_width)


def black_body(temperature: float, wavelength: float) -> float:
    """Planck's law for spectral radiance per unit wavelength, W·sr⁻¹·m⁻³."""
    exponent = PLANCK * LIGHT_SPEED / (wavelength * BOLTZMANN * temperature)
    if exponent > 700.0:
        # exp() would overflow, the radiance is zero for any practical purpose
        return 0.0
    return (
        BLACK_BODY_SCALE
        * 2.0 * PLANCK * LIGHT_SPEED ** 2
        / wavelength ** 5
        / math.expm1(exponent)
    )


def peak_wavelength(temperature: float) -> float:
    """Wavelength of the black-body maximum (Wien's displacement law)."""
    return WIEN / temperature


def _require_positive(owner: str, name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidScene(f"{owner}: `{name}` must be a positive number, got {value!r}")


def _require_non_negative(owner: str, name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0.0:
        raise InvalidScene(f"{owner}: `{name}` must be a non-negative number, got {value!r}")


class Attenuation(ABC):
    """Dimensionless spectrum, used as a colour filter."""

    @abstractmethod
    def at(self, wavelength: float) -> float:
        """Evaluate the spectrum at the given wavelength (metres)."""
        pass


@dataclass(frozen=True)
class ConstantAttenuation(Attenuation):
    """Flat spectrum, fully white by default."""
    intensity: float = 1.0

    def __post_init__(self):
        _require_non_negative("Constant attenuation", "intensity", self.intensity)

    def at(self, wavelength: float) -> float:
        return self.intensity


@dataclass(frozen=True)
class LorentzianAttenuation(Attenuation):
    """Single spectral line peaking at ``scale``."""
    maximum_at: float
    full_width_at_half_maximum: float
    scale: float = 1.0

    def __post_init__(self):
        _require_positive("Lorentzian attenuation", "maximum_at", self.maximum_at)
        _require_positive(
            "Lorentzian attenuation", "full_width_at_half_maximum", self.full_width_at_half_maximum
        )
        _require_non_negative("Lorentzian attenuation", "scale", self.scale)

    def at(self, wavelength: float) -> float:
        return self.scale * lorentzian(wavelength, self.maximum_at, self.full_width_at_half_maximum)


@dataclass(frozen=True)
class SumAttenuation(Attenuation):
    """Sum of the child spectra; an empty sum is black."""
    spectra: Tuple[Attenuation, ...] = ()

    def __post_init__(self):
        # Accept any iterable but keep it immutable
        object.__setattr__(self, 'spectra', tuple(self.spectra))

    def at(self, wavelength: float) -> float:
        return sum(spectrum.at(wavelength) for spectrum in self.spectra)


class Emittance(ABC):
    """Spectral radiance emitted independently of incoming light."""

    @abstractmethod
    def at(self, wavelength: float) -> float:
        """Spectral radiance at the given wavelength, W·sr⁻¹·m⁻³."""
        pass


@dataclass(frozen=True)
class ConstantEmittance(Emittance):
    radiance: float

    def __post_init__(self):
        _require_non_negative("Constant emittance", "radiance", self.radiance)

    def at(self, wavelength: float) -> float:
        return self.radiance


@dataclass(frozen=True)
class BlackBodyEmittance(Emittance):
    """Thermal emitter, see https://en.wikipedia.org/wiki/Planck%27s_law.

    Do not confuse with black body *absorption*: a material without
    reflectance and transmittance already absorbs everything.
    """
    temperature: float

    def __post_init__(self):
        _require_positive("Black body emittance", "temperature", self.temperature)

    def at(self, wavelength: float) -> float:
        return black_body(self.temperature, wavelength)


@dataclass(frozen=True)
class LorentzianEmittance(Emittance):
    """Emission line with peak radiance ``radiance`` at ``maximum_at``."""
    maximum_at: float
    full_width_at_half_maximum: float
    radiance: float

    def __post_init__(self):
        _require_positive("Lorentzian emittance", "maximum_at", self.maximum_at)
        _require_positive(
            "Lorentzian emittance", "full_width_at_half_maximum", self.full_width_at_half_maximum
        )
        _require_non_negative("Lorentzian emittance", "radiance", self.radiance)

    def at(self, wavelength: float) -> float:
        return self.radiance * lorentzian(wavelength, self.maximum_at, self.full_width_at_half_maximum)


BLACK = ConstantEmittance(0.0)
WHITE = ConstantAttenuation(1.0)
