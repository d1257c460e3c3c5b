"""
Volumetric effects for the tracer.

Implements homogeneous fog bounded by an axis-aligned box. Free paths are
sampled from the exponential distribution, which realizes the Beer-Lambert
law without accumulating optical depth along the ray.
"""

from __future__ import annotations
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .exceptions import InvalidScene
from .vec3 import Vec3
from .ray import Ray
from .shapes import Surface, HitRecord, AABB

if TYPE_CHECKING:
    from .materials import Material


class UniformFog(Surface):
    """A constant density participating medium inside a box.

    A scattering event is reported as a volumetric hit; the material then
    scatters uniformly over the sphere, tinted by its reflectance, or absorbs
    when it has none. Overlapping fogs are sampled independently.
    """

    def __init__(self, aabb: AABB, material: Material, density: float = 1.0):
        """Create a fog volume.

        Args:
            aabb: The box that bounds the medium
            material: Material applied at scattering events
            density: Scattering events per metre (higher = more opaque)

        Raises:
            InvalidScene: if the density is not a positive number
        """
        if not math.isfinite(density) or density <= 0:
            raise InvalidScene(f"Fog density must be positive, got {density!r}")
        self.aabb = aabb
        self.density = density
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float, rng: np.random.Generator) -> Optional[HitRecord]:
        """Sample a free-flight distance through the medium."""
        interval = self.aabb.hit(ray, t_min, t_max)
        if interval is None:
            return None
        t_enter, t_exit = interval

        # 1 - random() lies in (0, 1], so the logarithm is always finite
        free_path = -math.log(1.0 - rng.random()) / self.density
        t = t_enter + free_path
        if t >= t_exit:
            # The ray passes through un-scattered
            return None

        return HitRecord(
            point=ray.at(t),
            normal=Vec3.random_unit_vector(rng),
            t=t,
            front_face=True,
            material=self.material,
            volumetric=True,
        )

    def transmittance(self, path_length: float) -> float:
        """Probability that a ray crosses ``path_length`` metres without scattering."""
        return math.exp(-self.density * path_length)

    def __repr__(self) -> str:
        return f"UniformFog(aabb={self.aabb}, density={self.density})"
