"""
The scene: surfaces, a camera and the ambient (background) emittance.

A scene is built once and only read while rendering, so it is safe to share
between worker threads.
"""

from __future__ import annotations
from typing import Iterable, Iterator, Optional, Tuple

import numpy as np

from .camera import Camera
from .exceptions import InvalidScene
from .ray import Ray
from .shapes import HitRecord, Surface
from .spectrum import Emittance, BLACK


class Scene:
    """Immutable collection of surfaces seen through a camera."""

    __slots__ = ('_ambient_emittance', '_camera', '_surfaces')

    def __init__(
        self,
        camera: Camera,
        surfaces: Iterable[Surface] = (),
        ambient_emittance: Emittance = BLACK,
    ):
        """Create a scene.

        Args:
            camera: The camera to render from
            surfaces: Surfaces to render, in document order
            ambient_emittance: Radiance of rays that escape all geometry

        Raises:
            InvalidScene: if an item is not a surface or the ambient is not an emittance
        """
        surfaces = tuple(surfaces)
        for index, surface in enumerate(surfaces):
            if not isinstance(surface, Surface):
                raise InvalidScene(f"surfaces[{index}] is not a surface: {surface!r}")
        if not isinstance(ambient_emittance, Emittance):
            raise InvalidScene(f"ambient_emittance is not an emittance: {ambient_emittance!r}")
        if not isinstance(camera, Camera):
            raise InvalidScene(f"camera is not a Camera: {camera!r}")

        self._camera = camera
        self._surfaces: Tuple[Surface, ...] = surfaces
        self._ambient_emittance = ambient_emittance

    @property
    def camera(self) -> Camera:
        return self._camera

    @property
    def surfaces(self) -> Tuple[Surface, ...]:
        return self._surfaces

    @property
    def ambient_emittance(self) -> Emittance:
        return self._ambient_emittance

    def hit(self, ray: Ray, t_min: float, t_max: float, rng: np.random.Generator) -> Optional[HitRecord]:
        """Find the closest intersection among all surfaces."""
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for surface in self._surfaces:
            hit_record = surface.hit(ray, t_min, closest_t, rng)
            if hit_record is not None:
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def __len__(self) -> int:
        return len(self._surfaces)

    def __iter__(self) -> Iterator[Surface]:
        return iter(self._surfaces)

    def __repr__(self) -> str:
        return f"Scene(camera={self._camera}, surfaces={len(self._surfaces)})"
