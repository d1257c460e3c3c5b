"""
Geometric surfaces for the tracer.

Each surface implements the ``Surface`` protocol with a ``hit`` method.
Volumetric surfaces live in ``volumes.py``.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple, TYPE_CHECKING
import math

import numpy as np

from .exceptions import InvalidScene
from .vec3 import Vec3, Point3
from .ray import Ray

if TYPE_CHECKING:
    from .materials import Material


@dataclass
class HitRecord:
    """Stores information about a ray-surface intersection.

    Attributes:
        point: The intersection point in world space
        normal: The unit surface normal, always pointing against the ray
        t: Distance travelled along the ray (ray directions are unit length)
        front_face: True if the ray hit from outside, i.e. is entering the body
        material: The material at the hit point
        volumetric: True for scattering events inside a participating medium
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool
    material: Optional[Material] = None
    volumetric: bool = False

    def set_face_normal(self, ray: Ray, outward_normal: Vec3) -> None:
        """Set the normal to always point against the ray direction.

        Args:
            ray: The incoming ray
            outward_normal: The geometric unit normal pointing outward from surface
        """
        self.front_face = ray.direction.dot(outward_normal) < 0
        self.normal = outward_normal if self.front_face else -outward_normal


class Surface(ABC):
    """Abstract base class for everything a ray can hit."""

    material: Material

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float, rng: np.random.Generator) -> Optional[HitRecord]:
        """Test if ray intersects this surface.

        Args:
            ray: The ray to test
            t_min: Minimum t value to consider (avoid self-intersection)
            t_max: Maximum t value to consider
            rng: Random stream, used by stochastic surfaces such as fog

        Returns:
            HitRecord if intersection found, None otherwise
        """
        pass


class AABB:
    """Axis-aligned bounding box defined by its minimal and maximal corners."""

    def __init__(self, minimum: Point3, maximum: Point3):
        """Create an AABB from corner points.

        Args:
            minimum: Corner with smallest x, y, z values
            maximum: Corner with largest x, y, z values

        Raises:
            InvalidScene: if ``minimum`` exceeds ``maximum`` on any axis
        """
        if any(math.isnan(c) for c in (*minimum, *maximum)):
            raise InvalidScene(f"AABB corners must be numbers, got {minimum} and {maximum}")
        if any(lo > hi for lo, hi in zip(minimum, maximum)):
            raise InvalidScene(f"AABB minimum {minimum} exceeds maximum {maximum}")
        self.minimum = minimum
        self.maximum = maximum

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[Tuple[float, float]]:
        """Intersect the ray with the box using the slab method.

        Returns:
            The ``(t_enter, t_exit)`` interval clipped to ``(t_min, t_max)``,
            or None if the ray misses the box within that range
        """
        for i in range(3):
            origin = ray.origin[i]
            direction = ray.direction[i]
            if direction == 0.0:
                # Parallel to the slab: either always inside it or never
                if origin < self.minimum[i] or origin > self.maximum[i]:
                    return None
                continue

            inv_d = 1.0 / direction
            t0 = (self.minimum[i] - origin) * inv_d
            t1 = (self.maximum[i] - origin) * inv_d
            if inv_d < 0:
                t0, t1 = t1, t0

            t_min = max(t0, t_min)
            t_max = min(t1, t_max)
            if t_max <= t_min:
                return None

        return t_min, t_max

    def __repr__(self) -> str:
        return f"AABB(min={self.minimum}, max={self.maximum})"


class Sphere(Surface):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Material):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere, strictly positive
            material: Material for shading

        Raises:
            InvalidScene: if the radius is not a positive number
        """
        if not math.isfinite(radius) or radius <= 0:
            raise InvalidScene(f"Sphere radius must be positive, got {radius!r}")
        if not center.is_finite():
            raise InvalidScene(f"Sphere center must be finite, got {center}")
        self.center = center
        self.radius = radius
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float, rng: np.random.Generator) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0
        which is the quadratic at² + bt + c = 0.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0.0:
            return None
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0:
            return None

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if root <= t_min or root >= t_max:
            root = (-half_b + sqrtd) / a
            if root <= t_min or root >= t_max:
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius

        hit_record = HitRecord(
            point=point,
            normal=outward_normal,
            t=root,
            front_face=True,
            material=self.material,
        )
        hit_record.set_face_normal(ray, outward_normal)

        return hit_record

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"
