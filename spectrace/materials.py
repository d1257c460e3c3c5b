"""
Materials: what happens to light of one wavelength at a hit point.

A material aggregates three optional components:
- Emittance: radiates independently of incoming light
- Reflectance: diffuse (Lambertian) and specular (fuzzy mirror) reflection
- Transmittance: dielectric interface with Fresnel reflection, dispersive
  Snell refraction and Beer-Lambert absorption inside the body

A material with none of them is a perfect absorber.
Inside a participating medium only the reflectance counts: it tints an
isotropic scatter.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .absorption import AttenuationCoefficient, ZERO_COEFFICIENT
from .exceptions import InvalidScene
from .ray import Ray
from .refraction import AbsoluteRefractiveIndex, RelativeRefractiveIndex, VACUUM
from .spectrum import Attenuation, Emittance, WHITE
from .vec3 import Vec3

if TYPE_CHECKING:
    from .shapes import HitRecord


def _require_fraction(owner: str, name: str, value: Optional[float]) -> None:
    if value is None:
        return
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise InvalidScene(f"{owner}: `{name}` must lie in [0, 1], got {value!r}")


@dataclass(frozen=True)
class Reflectance:
    """Surface reflection.

    Attributes:
        attenuation: Reflected fraction per wavelength (white by default)
        diffusion: Probability of a diffuse bounce; None means mirror only
        fuzz: Radius of the random perturbation added to mirror reflections
    """
    attenuation: Attenuation = WHITE
    diffusion: Optional[float] = None
    fuzz: Optional[float] = None

    def __post_init__(self):
        _require_fraction("Reflectance", "diffusion", self.diffusion)
        _require_fraction("Reflectance", "fuzz", self.fuzz)


@dataclass(frozen=True)
class Transmittance:
    """Dielectric body.

    Attributes:
        refracted_index: Refractive index of the body
        incident_index: Refractive index of the surrounding medium
        attenuation: Colour filter for light that travelled through the body
        coefficient: Absorption coefficient of the body, m⁻¹
    """
    refracted_index: AbsoluteRefractiveIndex
    incident_index: AbsoluteRefractiveIndex = VACUUM
    attenuation: Attenuation = WHITE
    coefficient: AttenuationCoefficient = ZERO_COEFFICIENT

    def inside_factor(self, wavelength: float, distance: float) -> float:
        """Filter for light that travelled ``distance`` metres inside the body."""
        return self.coefficient.transmission(wavelength, distance) * self.attenuation.at(wavelength)


@dataclass
class ScatterOutcome:
    """Result of a material interaction.

    Emission and scattering are reported together: a hot mirror both emits
    and reflects. A missing ``scattered_ray`` means the path is absorbed.
    """
    emitted: float = 0.0
    scattered_ray: Optional[Ray] = None
    attenuation: float = 0.0

    @property
    def absorbed(self) -> bool:
        return self.scattered_ray is None


@dataclass(frozen=True)
class Material:
    emittance: Optional[Emittance] = None
    reflectance: Optional[Reflectance] = None
    transmittance: Optional[Transmittance] = None

    def emitted(self, wavelength: float, hit: HitRecord) -> float:
        """Radiance emitted towards the ray, only on the outer side of the surface."""
        if self.emittance is None or not hit.front_face:
            return 0.0
        return self.emittance.at(wavelength)

    def scatter(self, ray_in: Ray, hit: HitRecord, wavelength: float, rng: np.random.Generator) -> ScatterOutcome:
        """Decide between diffuse, specular and refracted continuation, or absorption.

        Args:
            ray_in: The incoming ray (unit direction)
            hit: The intersection being shaded
            wavelength: The wavelength being traced, metres
            rng: Random stream of the current pixel

        Returns:
            ScatterOutcome with the emitted radiance and, unless absorbed,
            the continuation ray and its attenuation factor
        """
        outcome = ScatterOutcome(emitted=self.emitted(wavelength, hit))
        if hit.volumetric:
            return self._isotropic(outcome, hit, wavelength, rng)

        reflectance = self.reflectance
        if reflectance is not None and reflectance.diffusion is not None:
            if rng.random() < reflectance.diffusion:
                return self._diffuse(outcome, hit, wavelength, rng)

        if self.transmittance is not None:
            return self._interface(outcome, ray_in, hit, wavelength, rng)
        if reflectance is not None:
            return self._mirror(outcome, ray_in, hit, reflectance, 1.0, wavelength, rng)
        return outcome

    def _isotropic(self, outcome: ScatterOutcome, hit: HitRecord, wavelength: float, rng: np.random.Generator) -> ScatterOutcome:
        """Uniform scattering inside a medium; without a reflectance the medium only absorbs."""
        if self.reflectance is None:
            return outcome

        outcome.scattered_ray = Ray(hit.point, Vec3.random_unit_vector(rng))
        outcome.attenuation = self.reflectance.attenuation.at(wavelength)
        return outcome

    def _diffuse(self, outcome: ScatterOutcome, hit: HitRecord, wavelength: float, rng: np.random.Generator) -> ScatterOutcome:
        """Cosine-weighted bounce around the normal (Lambertian reflectance)."""
        scatter_direction = hit.normal + Vec3.random_unit_vector(rng)

        # Catch degenerate scatter direction
        if scatter_direction.near_zero():
            scatter_direction = hit.normal

        outcome.scattered_ray = Ray(hit.point, scatter_direction)
        outcome.attenuation = self.reflectance.attenuation.at(wavelength)
        return outcome

    def _mirror(
        self,
        outcome: ScatterOutcome,
        ray_in: Ray,
        hit: HitRecord,
        reflectance: Optional[Reflectance],
        factor: float,
        wavelength: float,
        rng: np.random.Generator,
    ) -> ScatterOutcome:
        """Specular reflection, perturbed by the reflectance fuzz."""
        reflected = ray_in.direction.reflect(hit.normal)
        attenuation = factor

        if reflectance is not None:
            if reflectance.fuzz:
                reflected = reflected + Vec3.random_unit_vector(rng) * reflectance.fuzz
            attenuation *= reflectance.attenuation.at(wavelength)

        # A fuzzed reflection may end up below the surface: absorb it
        if reflected.dot(hit.normal) <= 0:
            return outcome
        if reflected.near_zero():
            return outcome

        outcome.scattered_ray = Ray(hit.point, reflected)
        outcome.attenuation = attenuation
        return outcome

    def _interface(
        self,
        outcome: ScatterOutcome,
        ray_in: Ray,
        hit: HitRecord,
        wavelength: float,
        rng: np.random.Generator,
    ) -> ScatterOutcome:
        """Fresnel reflection or dispersive refraction at the body boundary."""
        transmittance = self.transmittance
        indices = RelativeRefractiveIndex.at_interface(
            transmittance.incident_index,
            transmittance.refracted_index,
            wavelength,
            entering=hit.front_face,
        )

        # Light hit from inside has travelled through the body since the last interface
        factor = 1.0 if hit.front_face else transmittance.inside_factor(wavelength, hit.t)

        cos_incident = min(max(-ray_in.direction.dot(hit.normal), 0.0), 1.0)
        refracted = indices.refract(ray_in.direction, hit.normal)
        if refracted is None or rng.random() < indices.reflectance(cos_incident):
            # Total internal reflection or the Fresnel draw chose reflection
            return self._mirror(outcome, ray_in, hit, self.reflectance, factor, wavelength, rng)

        outcome.scattered_ray = Ray(hit.point, refracted)
        outcome.attenuation = factor
        return outcome

    @property
    def is_black(self) -> bool:
        """True for a material that neither emits nor scatters."""
        return self.emittance is None and self.reflectance is None and self.transmittance is None


ABSORBER = Material()
