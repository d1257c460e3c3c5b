"""
Camera module for generating primary rays.

Supports:
- Perspective projection with a vertical field of view
- Arbitrary positioning via location / look-at / up
- Sub-pixel positioning for anti-aliasing
"""

from __future__ import annotations
from typing import Tuple
import math

from .exceptions import InvalidScene
from .vec3 import Vec3, Point3
from .ray import Ray


class Camera:
    """A pinhole camera. The orthonormal basis is computed once."""

    def __init__(
        self,
        location: Point3 = Point3(0, 0, -1),
        look_at: Point3 = Point3(0, 0, 0),
        up: Vec3 = Vec3(0, 1, 0),
        vertical_fov: float = 45.0,
    ):
        """Create a camera.

        Args:
            location: Camera position in world space
            look_at: Point the camera is looking at
            up: World up direction, must not be parallel to the view direction
            vertical_fov: Vertical field of view in degrees, in (0, 180)

        Raises:
            InvalidScene: if the basis is degenerate or the field of view is out of range
        """
        if not (0.0 < vertical_fov < 180.0):
            raise InvalidScene(f"Camera vertical_fov must lie in (0, 180) degrees, got {vertical_fov!r}")

        principal_axis = look_at - location
        if principal_axis.near_zero():
            raise InvalidScene(f"Camera location and look_at coincide at {location}")

        # Compute orthonormal camera basis
        self.forward = principal_axis.normalize()
        right = self.forward.cross(up)
        if right.length() < 1e-9:
            raise InvalidScene(f"Camera up {up} is parallel to the view direction {self.forward}")
        self.right = right.normalize()
        self.true_up = self.right.cross(self.forward)

        self.location = location
        self.look_at = look_at
        self.up = up
        self.vertical_fov = vertical_fov

    def viewport(self, width: int, height: int) -> Viewport:
        """Map an image of ``width`` x ``height`` pixels onto the camera's field of view."""
        return Viewport(self, width, height)

    def __repr__(self) -> str:
        return f"Camera(location={self.location}, look_at={self.look_at}, vertical_fov={self.vertical_fov})"


class Viewport:
    """Pixel grid on the image plane one unit in front of the camera.

    Image coordinates grow right (x) and down (y), row 0 is the top row.
    """

    def __init__(self, camera: Camera, width: int, height: int):
        self.camera = camera
        self.width = width
        self.height = height

        viewport_height = 2.0 * math.tan(math.radians(camera.vertical_fov) / 2.0)
        pixel_size = viewport_height / height

        # How much space one image pixel takes on the image plane
        self.dx = camera.right * pixel_size
        self.dy = -camera.true_up * pixel_size
        self._half_size = (width / 2.0, height / 2.0)

    def at(self, image_x: float, image_y: float) -> Vec3:
        """Image plane point (relative to the camera) for fractional image coordinates."""
        return (
            self.camera.forward
            + self.dx * (image_x - self._half_size[0])
            + self.dy * (image_y - self._half_size[1])
        )

    def cast_ray(self, x: int, y: int, subpixel: Tuple[float, float] = (0.5, 0.5)) -> Ray:
        """Generate a ray through pixel ``(x, y)``.

        Args:
            x: Pixel column, 0 = left
            y: Pixel row, 0 = top
            subpixel: Position inside the pixel, each component in [0, 1)

        Returns:
            A ray from the camera through the specified point of the pixel
        """
        direction = self.at(x + subpixel[0], y + subpixel[1])
        return Ray(self.camera.location, direction)
