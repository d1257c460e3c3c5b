"""
Display conversion for rendered images.

Spectral radiance integrates to absolute XYZ values with no natural display
scale, so images are normalized by their brightest channel before the
transfer curve is applied. Supports:
- Exposure normalization
- The sRGB transfer function or a plain gamma curve
- Quantization to 8 or 16 bits per channel
"""

from __future__ import annotations
from typing import Optional

import numpy as np

from .exceptions import ConfigurationError


def normalize_exposure(image: np.ndarray) -> np.ndarray:
    """Scale an HDR image so its brightest channel is 1.

    Images whose maximum is already at most 1 are left as they are, dark
    renders are not brightened.

    Args:
        image: Linear image (H, W, 3)

    Returns:
        Linear image with values in [0, 1]
    """
    image = np.clip(np.nan_to_num(image, nan=0.0, posinf=0.0, neginf=0.0), 0.0, None)
    peak = float(image.max()) if image.size else 0.0
    return image / max(peak, 1.0)


def apply_gamma(image: np.ndarray, gamma: float = 2.2) -> np.ndarray:
    """Apply gamma correction to an image.

    Args:
        image: Input image (H, W, 3), values in [0, 1]
        gamma: Gamma value, must be positive

    Returns:
        Gamma-corrected image
    """
    if gamma <= 0:
        raise ConfigurationError(f"gamma must be positive, got {gamma}")
    return np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma)


def linear_to_srgb(linear: np.ndarray) -> np.ndarray:
    """Convert linear RGB to sRGB with the piecewise sRGB transfer curve.

    Args:
        linear: Linear RGB image (H, W, 3), values >= 0

    Returns:
        sRGB image (H, W, 3), values in [0, 1]
    """
    linear = np.clip(linear, 0.0, None)

    # Linear toe below the threshold, power curve above
    srgb = np.where(
        linear <= 0.0031308,
        linear * 12.92,
        1.055 * np.power(linear, 1.0 / 2.4) - 0.055,
    )
    return np.clip(srgb, 0.0, 1.0)


def quantize(image: np.ndarray, bits: int = 8) -> np.ndarray:
    """Quantize an image in [0, 1] to unsigned integers of ``bits`` bits."""
    if bits == 8:
        dtype = np.uint8
    elif bits == 16:
        dtype = np.uint16
    else:
        raise ConfigurationError(f"bits must be 8 or 16, got {bits}")
    top = (1 << bits) - 1
    return np.round(np.clip(image, 0.0, 1.0) * top).astype(dtype)


def to_ldr(image: np.ndarray, gamma: Optional[float] = None, bits: int = 8) -> np.ndarray:
    """Convert a linear HDR image to a displayable integer image.

    Args:
        image: Linear sRGB image (H, W, 3)
        gamma: Plain gamma to apply instead of the sRGB curve, None for sRGB
        bits: 8 or 16 bits per channel

    Returns:
        Integer image of shape (H, W, 3)
    """
    normalized = normalize_exposure(image)
    if gamma is None:
        encoded = linear_to_srgb(normalized)
    else:
        encoded = apply_gamma(normalized, gamma)
    return quantize(encoded, bits)
