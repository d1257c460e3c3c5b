"""
Ray class for representing rays in 3D space.

A ray is defined by an origin point and a unit direction vector.
Ray(t) = origin + t * direction, so ``t`` is the travelled distance.
"""

from __future__ import annotations
from .vec3 import Vec3, Point3


class Ray:
    """A ray with origin and direction.

    The direction is normalized on construction, which keeps intersection
    distances in world units; the wavelength being traced is carried
    separately by the integrator.
    """

    __slots__ = ('origin', 'direction')

    def __init__(self, origin: Point3, direction: Vec3):
        """Create a ray with given origin and direction.

        Args:
            origin: The starting point of the ray
            direction: The direction vector (normalized here; a zero vector
                stays zero and never hits anything)
        """
        self.origin = origin
        self.direction = direction.normalize()

    @classmethod
    def between(cls, start: Point3, through: Point3) -> Ray:
        """Create a ray starting at ``start`` and passing through ``through``."""
        return cls(start, through - start)

    def at(self, t: float) -> Point3:
        """Get the point along the ray at distance t."""
        return self.origin + self.direction * t

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin}, direction={self.direction})"
