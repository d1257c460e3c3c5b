"""Tests for CIE colour matching and XYZ to sRGB conversion."""

import numpy as np
import pytest

from spectrace.colorimetry import (
    MIN_WAVELENGTH, MAX_WAVELENGTH, XYZ_TO_LINEAR_SRGB,
    color_matching, piecewise_gaussian, xyz_to_linear_srgb,
)


class TestColorMatching:
    """Test the analytic CIE 1931 fit."""

    def test_scalar_shape(self):
        assert color_matching(550e-9).shape == (3,)

    def test_array_shape(self):
        wavelengths = np.linspace(MIN_WAVELENGTH, MAX_WAVELENGTH, 7)
        assert color_matching(wavelengths).shape == (7, 3)

    def test_luminance_peak_near_555nm(self):
        assert color_matching(555e-9)[1] == pytest.approx(1.0, abs=0.02)

    def test_blue_is_dominated_by_z(self):
        x, y, z = color_matching(450e-9)
        assert z > x and z > y

    def test_red_is_dominated_by_x(self):
        x, y, z = color_matching(620e-9)
        assert x > y > z

    def test_edges_are_dark(self):
        assert np.all(np.abs(color_matching(MAX_WAVELENGTH)) < 1e-3)

    def test_asymmetric_gaussian(self):
        assert float(piecewise_gaussian(500.0, 500.0, 10.0, 20.0)) == pytest.approx(1.0)
        below = float(piecewise_gaussian(490.0, 500.0, 10.0, 20.0))
        above = float(piecewise_gaussian(520.0, 500.0, 10.0, 20.0))
        assert below == pytest.approx(above)


class TestXyzToSrgb:
    """Test the colour space conversion."""

    def test_d65_white_maps_to_grey(self):
        # D65 white point with Y = 1
        rgb = xyz_to_linear_srgb(np.array([0.95047, 1.0, 1.08883]))
        assert rgb == pytest.approx([1.0, 1.0, 1.0], abs=2e-3)

    def test_image_shape_is_kept(self):
        image = np.ones((4, 5, 3))
        assert xyz_to_linear_srgb(image).shape == (4, 5, 3)

    def test_matches_matrix(self):
        xyz = np.array([0.2, 0.3, 0.4])
        assert xyz_to_linear_srgb(xyz) == pytest.approx(XYZ_TO_LINEAR_SRGB @ xyz)
