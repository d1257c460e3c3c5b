"""
Renderer module - turns spectral radiance into an image.

Implements:
- Hero-wavelength spectral sampling with low-discrepancy sequences
- CIE 1931 reduction of radiance samples to XYZ and linear sRGB
- Multi-threaded tile-based rendering, reproducible for any thread count
- Cancellation and progress reporting
- LDR output through Pillow and Radiance HDR output
"""

from __future__ import annotations
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Callable, List, Tuple

import numpy as np
from PIL import Image as PILImage

from .camera import Viewport
from .colorimetry import MIN_WAVELENGTH, MAX_WAVELENGTH, color_matching, xyz_to_linear_srgb
from .exceptions import ConfigurationError, RenderCancelled
from .integrator import PathTracer
from .scene import Scene
from .sequence import Halton2, VanDerCorput
from .tonemapping import to_ldr

logger = logging.getLogger(__name__)

Tile = Tuple[int, int, int, int]


@dataclass
class RenderSettings:
    """Configuration for the renderer.

    Wavelengths are in metres. ``gamma`` None selects the sRGB transfer curve
    for LDR output.
    """
    width: int = 800
    height: int = 600
    samples_per_pixel: int = 100
    max_depth: int = 50
    roulette_start_depth: int = 5
    roulette_probability: float = 0.1
    min_hit_distance: float = 1e-3
    min_wavelength: float = MIN_WAVELENGTH
    max_wavelength: float = MAX_WAVELENGTH
    tile_size: int = 32
    num_threads: int = 0  # 0 = auto-detect
    seed: int = 0
    gamma: Optional[float] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(f"resolution must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel <= 0:
            raise ConfigurationError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ConfigurationError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.roulette_start_depth < 0:
            raise ConfigurationError(f"roulette_start_depth must be non-negative, got {self.roulette_start_depth}")
        if not 0.0 <= self.roulette_probability < 1.0:
            raise ConfigurationError(
                f"roulette_probability must lie in [0, 1), got {self.roulette_probability}"
            )
        if not self.min_hit_distance >= 0.0:
            raise ConfigurationError(f"min_hit_distance must be non-negative, got {self.min_hit_distance}")
        if not MIN_WAVELENGTH <= self.min_wavelength < self.max_wavelength <= MAX_WAVELENGTH:
            raise ConfigurationError(
                f"wavelength range [{self.min_wavelength}, {self.max_wavelength}] must be increasing "
                f"and inside [{MIN_WAVELENGTH}, {MAX_WAVELENGTH}]"
            )
        if self.tile_size <= 0:
            raise ConfigurationError(f"tile_size must be positive, got {self.tile_size}")
        if self.num_threads < 0:
            raise ConfigurationError(f"num_threads must be non-negative, got {self.num_threads}")
        if self.seed < 0:
            raise ConfigurationError(f"seed must be non-negative, got {self.seed}")
        if self.gamma is not None and self.gamma <= 0:
            raise ConfigurationError(f"gamma must be positive, got {self.gamma}")

        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4

    @property
    def spectral_width(self) -> float:
        return self.max_wavelength - self.min_wavelength


class Renderer:
    """Spectral path tracing renderer with multi-threading support."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self.tracer = PathTracer(
            max_depth=self.settings.max_depth,
            min_hit_distance=self.settings.min_hit_distance,
            roulette_start_depth=self.settings.roulette_start_depth,
            roulette_probability=self.settings.roulette_probability,
        )
        self._progress_callback: Optional[Callable[[float], None]] = None
        self._cancelled = threading.Event()
        self._progress_lock = threading.Lock()

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def cancel(self) -> None:
        """Ask a running render to stop; it raises RenderCancelled.

        Safe to call from any thread, including the progress callback.
        """
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def render(self, scene: Scene) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            scene: The scene to render

        Returns:
            HDR linear sRGB image of shape (height, width, 3)

        Raises:
            RenderCancelled: if cancel() was called during the render
        """
        return xyz_to_linear_srgb(self.render_xyz(scene))

    def render_xyz(self, scene: Scene) -> np.ndarray:
        """Render the scene into CIE XYZ.

        Args:
            scene: The scene to render

        Returns:
            XYZ image of shape (height, width, 3)

        Raises:
            RenderCancelled: if cancel() was called during the render
        """
        width = self.settings.width
        height = self.settings.height
        viewport = scene.camera.viewport(width, height)

        self._cancelled.clear()
        image = np.zeros((height, width, 3), dtype=np.float64)

        tiles = self._generate_tiles(width, height)
        total_tiles = len(tiles)
        completed_tiles = [0]

        def render_tile(tile: Tile) -> None:
            """Render a single tile into its own slice of the image."""
            x0, y0, x1, y1 = tile
            for y in range(y0, y1):
                for x in range(x0, x1):
                    if self._cancelled.is_set():
                        raise RenderCancelled(f"render cancelled at pixel ({x}, {y})")
                    image[y, x] = self.render_pixel(scene, viewport, x, y)

            with self._progress_lock:
                completed_tiles[0] += 1
                done = completed_tiles[0]
            if self._progress_callback:
                self._progress_callback(done / total_tiles)

        logger.info(
            "Rendering %dx%d at %d samples per pixel, %d tiles on %d threads",
            width, height, self.settings.samples_per_pixel, total_tiles, self.settings.num_threads,
        )
        start = time.perf_counter()

        try:
            if self.settings.num_threads > 1:
                with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                    # Consume the iterator so worker exceptions propagate
                    for _ in executor.map(render_tile, tiles):
                        pass
            else:
                for tile in tiles:
                    render_tile(tile)
        except RenderCancelled:
            # Stop the remaining workers before they start another pixel
            self._cancelled.set()
            logger.info("Render cancelled after %d of %d tiles", completed_tiles[0], total_tiles)
            raise

        logger.info("Render finished in %.2fs", time.perf_counter() - start)
        return image

    def render_pixel(self, scene: Scene, viewport: Viewport, x: int, y: int) -> np.ndarray:
        """Estimate the XYZ value of one pixel.

        The pixel owns a random stream seeded from ``(seed, y, x)``, so its
        value does not depend on which thread renders it or in which order.

        Args:
            scene: The scene to render
            viewport: Pixel grid of the camera
            x: Pixel column
            y: Pixel row

        Returns:
            Array (X, Y, Z)
        """
        settings = self.settings
        rng = np.random.default_rng([settings.seed, y, x])

        # Random shifts decorrelate the sequences of neighbouring pixels
        jitter = rng.random(2)
        positions = Halton2(5, 3, offset=(jitter[0], jitter[1]))
        wavelength_fractions = VanDerCorput(2, offset=rng.random())

        samples = settings.samples_per_pixel
        wavelengths = np.empty(samples)
        radiances = np.empty(samples)
        for i in range(samples):
            wavelength = settings.min_wavelength + settings.spectral_width * next(wavelength_fractions)
            ray = viewport.cast_ray(x, y, next(positions))
            wavelengths[i] = wavelength
            radiances[i] = self.tracer.trace(scene, ray, wavelength, rng)

        # Monte-Carlo estimate of the integral of L(λ)·cmf(λ) over the range
        return radiances @ color_matching(wavelengths) * (settings.spectral_width / samples)

    def _generate_tiles(self, width: int, height: int) -> List[Tile]:
        """Generate tiles for parallel rendering.

        Args:
            width: Image width
            height: Image height

        Returns:
            List of tiles as (x0, y0, x1, y1) tuples
        """
        tile_size = self.settings.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles

    def to_ldr(self, hdr_image: np.ndarray, bits: int = 8) -> np.ndarray:
        """Convert a linear HDR image to 8 or 16 bit display values."""
        return to_ldr(hdr_image, gamma=self.settings.gamma, bits=bits)

    def save_image(self, image: np.ndarray, filename: str) -> None:
        """Save image to file.

        Args:
            image: Linear HDR image or an already quantized uint8 image
            filename: Output filename (extension determines format);
                ``.hdr`` keeps the linear values, anything else goes through Pillow
        """
        if filename.lower().endswith('.hdr'):
            save_radiance_hdr(image, filename)
            logger.info("Saved HDR image to %s", filename)
            return

        if image.dtype != np.uint8:
            image = self.to_ldr(image)

        pil_image = PILImage.fromarray(image)
        pil_image.save(filename)
        logger.info("Saved image to %s", filename)


def float_to_rgbe(image: np.ndarray) -> np.ndarray:
    """Convert a float RGB image to shared-exponent RGBE bytes.

    Negative and non-finite components are stored as 0.

    Args:
        image: Float image (H, W, 3)

    Returns:
        uint8 array (H, W, 4)
    """
    image = np.clip(np.nan_to_num(image, nan=0.0, posinf=0.0, neginf=0.0), 0.0, None)
    brightest = image.max(axis=-1)
    mantissa, exponent = np.frexp(brightest)
    visible = brightest >= 1e-32

    scale = np.zeros_like(brightest)
    np.divide(mantissa * 256.0, brightest, out=scale, where=visible)

    rgbe = np.zeros(image.shape[:-1] + (4,), dtype=np.uint8)
    rgbe[..., :3] = np.minimum(image * scale[..., None], 255.0).astype(np.uint8)
    rgbe[..., 3] = np.where(visible, np.clip(exponent + 128, 0, 255), 0)
    return rgbe


def save_radiance_hdr(image: np.ndarray, filename: str) -> None:
    """Save image in the (uncompressed) Radiance HDR format."""
    height, width = image.shape[:2]

    with open(filename, 'wb') as f:
        f.write(b'#?RADIANCE\n')
        f.write(b'FORMAT=32-bit_rle_rgbe\n')
        f.write(b'\n')
        f.write(f'-Y {height} +X {width}\n'.encode())
        f.write(float_to_rgbe(image).tobytes())
