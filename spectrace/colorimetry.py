"""
Colorimetry: CIE 1931 colour matching and XYZ to sRGB conversion.

The colour matching functions use the multi-lobe piecewise Gaussian fit of
Wyman, Sloan and Shirley, "Simple Analytic Approximations to the CIE XYZ
Color Matching Functions" (JCGT 2013), accurate to within a few percent of
the tabulated 2° observer.
"""

from __future__ import annotations
from typing import Union

import numpy as np

# Range over which the colour matching functions are meaningful, metres
MIN_WAVELENGTH = 360e-9
MAX_WAVELENGTH = 830e-9

# Linear sRGB primaries with D65 white point
XYZ_TO_LINEAR_SRGB = np.array([
    [3.2406, -1.5372, -0.4986],
    [-0.9689, 1.8758, 0.0415],
    [0.0557, -0.2040, 1.0570],
])

ArrayLike = Union[float, np.ndarray]


def piecewise_gaussian(wavelength_nm: ArrayLike, mean: float, sigma_low: float, sigma_high: float) -> np.ndarray:
    """Gaussian with a different width on each side of its mean."""
    wavelength_nm = np.asarray(wavelength_nm, dtype=np.float64)
    sigma = np.where(wavelength_nm < mean, sigma_low, sigma_high)
    t = (wavelength_nm - mean) / sigma
    return np.exp(-0.5 * t * t)


def x_bar(wavelength_nm: ArrayLike) -> np.ndarray:
    g = piecewise_gaussian
    return (
        1.056 * g(wavelength_nm, 599.8, 37.9, 31.0)
        + 0.362 * g(wavelength_nm, 442.0, 16.0, 26.7)
        - 0.065 * g(wavelength_nm, 501.1, 20.4, 26.2)
    )


def y_bar(wavelength_nm: ArrayLike) -> np.ndarray:
    g = piecewise_gaussian
    return (
        0.821 * g(wavelength_nm, 568.8, 46.9, 40.5)
        + 0.286 * g(wavelength_nm, 530.9, 16.3, 31.1)
    )


def z_bar(wavelength_nm: ArrayLike) -> np.ndarray:
    g = piecewise_gaussian
    return (
        1.217 * g(wavelength_nm, 437.0, 11.8, 36.0)
        + 0.681 * g(wavelength_nm, 459.0, 26.0, 13.8)
    )


def color_matching(wavelength: ArrayLike) -> np.ndarray:
    """Evaluate the CIE 1931 colour matching functions.

    Args:
        wavelength: Wavelength(s) in metres, scalar or array of shape (N,)

    Returns:
        Array of shape (3,) for a scalar input, (N, 3) for an array,
        holding (x̄, ȳ, z̄)
    """
    wavelength_nm = np.asarray(wavelength, dtype=np.float64) * 1e9
    return np.stack([x_bar(wavelength_nm), y_bar(wavelength_nm), z_bar(wavelength_nm)], axis=-1)


def xyz_to_linear_srgb(xyz: np.ndarray) -> np.ndarray:
    """Convert CIE XYZ to linear sRGB.

    Out-of-gamut colours keep their negative components; clipping is left to
    display conversion.

    Args:
        xyz: Array with XYZ in the last axis, e.g. (H, W, 3)

    Returns:
        Linear sRGB array of the same shape
    """
    xyz = np.asarray(xyz, dtype=np.float64)
    return xyz @ XYZ_TO_LINEAR_SRGB.T
