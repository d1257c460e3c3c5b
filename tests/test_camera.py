"""Tests for Camera class."""

import math

import pytest

from spectrace.camera import Camera
from spectrace.exceptions import InvalidScene
from spectrace.vec3 import Vec3, Point3


class TestCameraCreation:
    """Test Camera construction."""

    def test_defaults(self):
        cam = Camera()
        assert cam.location == Point3(0, 0, -1)
        assert cam.look_at == Point3(0, 0, 0)
        assert cam.vertical_fov == 45.0

    def test_basis_is_orthonormal(self):
        cam = Camera(Point3(-1, 2, -6), Point3(-0.5, 0.5, -1), Vec3(0, 1, 0), 45)
        for axis in (cam.forward, cam.right, cam.true_up):
            assert axis.length() == pytest.approx(1.0)
        assert cam.forward.dot(cam.right) == pytest.approx(0.0, abs=1e-12)
        assert cam.forward.dot(cam.true_up) == pytest.approx(0.0, abs=1e-12)
        assert cam.right.dot(cam.true_up) == pytest.approx(0.0, abs=1e-12)

    def test_true_up_follows_world_up(self):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, 5), Vec3(0, 1, 0))
        assert cam.forward == Vec3(0, 0, 1)
        assert cam.true_up == Vec3(0, 1, 0)

    @pytest.mark.parametrize("fov", [0.0, 180.0, -10.0])
    def test_invalid_fov(self, fov):
        with pytest.raises(InvalidScene):
            Camera(vertical_fov=fov)

    def test_coincident_look_at(self):
        with pytest.raises(InvalidScene):
            Camera(Point3(1, 1, 1), Point3(1, 1, 1))

    def test_up_parallel_to_view(self):
        with pytest.raises(InvalidScene):
            Camera(Point3(0, 0, 0), Point3(0, 5, 0), Vec3(0, 1, 0))


class TestViewport:
    """Test primary ray generation."""

    def test_center_ray(self):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, 1))
        ray = cam.viewport(3, 3).cast_ray(1, 1)
        assert ray.origin == Point3(0, 0, 0)
        assert ray.direction == Vec3(0, 0, 1)

    def test_top_edge_matches_field_of_view(self):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, 1), Vec3(0, 1, 0), vertical_fov=90)
        viewport = cam.viewport(4, 4)
        # Pixel row 0, sampled at its top edge in the middle column
        ray = viewport.cast_ray(2, 0, subpixel=(0.0, 0.0))
        angle = math.degrees(math.atan2(ray.direction.y, ray.direction.z))
        assert angle == pytest.approx(45.0)

    def test_rows_grow_downwards(self):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, 1))
        viewport = cam.viewport(10, 10)
        top = viewport.cast_ray(5, 0)
        bottom = viewport.cast_ray(5, 9)
        assert top.direction.y > 0
        assert bottom.direction.y < 0

    def test_columns_grow_along_right(self):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, 1))
        viewport = cam.viewport(10, 10)
        left = viewport.cast_ray(0, 5)
        right = viewport.cast_ray(9, 5)
        assert right.direction.dot(cam.right) > 0
        assert left.direction.dot(cam.right) < 0

    def test_square_pixels(self):
        cam = Camera(Point3(0, 0, 0), Point3(0, 0, 1))
        viewport = cam.viewport(20, 10)
        assert viewport.dx.length() == pytest.approx(viewport.dy.length())
