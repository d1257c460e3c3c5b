"""
Spectral path tracing integrator.

Estimates the radiance carried by one camera ray at one wavelength. The
recursion of the rendering equation is unrolled into a loop carrying the
accumulated radiance and the running throughput, with Russian roulette
termination past a warm-up depth.
"""

from __future__ import annotations
import logging
import math

import numpy as np

from .exceptions import ConfigurationError
from .ray import Ray
from .scene import Scene

logger = logging.getLogger(__name__)


class PathTracer:
    """Monte-Carlo estimator of spectral radiance along a ray."""

    def __init__(
        self,
        max_depth: int = 50,
        min_hit_distance: float = 1e-3,
        roulette_start_depth: int = 5,
        roulette_probability: float = 0.1,
    ):
        """Create a path tracer.

        Args:
            max_depth: Maximum number of surface interactions per path
            min_hit_distance: Hits closer than this are ignored (self-intersection)
            roulette_start_depth: First depth at which Russian roulette may stop a path
            roulette_probability: Termination probability per bounce, 0 disables roulette
        """
        if max_depth < 0:
            raise ConfigurationError(f"max_depth must be non-negative, got {max_depth}")
        if not min_hit_distance >= 0.0:
            raise ConfigurationError(f"min_hit_distance must be non-negative, got {min_hit_distance}")
        if roulette_start_depth < 0:
            raise ConfigurationError(f"roulette_start_depth must be non-negative, got {roulette_start_depth}")
        if not 0.0 <= roulette_probability < 1.0:
            raise ConfigurationError(f"roulette_probability must lie in [0, 1), got {roulette_probability}")

        self.max_depth = max_depth
        self.min_hit_distance = min_hit_distance
        self.roulette_start_depth = roulette_start_depth
        self.roulette_probability = roulette_probability

    def trace(self, scene: Scene, ray: Ray, wavelength: float, rng: np.random.Generator) -> float:
        """Trace the ray and return the spectral radiance at ``wavelength``.

        Args:
            scene: The scene to trace against
            ray: The camera ray (unit direction)
            wavelength: The wavelength being traced, metres
            rng: Random stream owned by the caller

        Returns:
            Radiance estimate in W·sr⁻¹·m⁻³; non-finite estimates are reported as 0
        """
        total_radiance = 0.0
        throughput = 1.0
        survival = 1.0 - self.roulette_probability

        for depth in range(self.max_depth):
            if depth >= self.roulette_start_depth and self.roulette_probability > 0.0:
                if rng.random() < self.roulette_probability:
                    break
                throughput /= survival

            hit = scene.hit(ray, self.min_hit_distance, math.inf, rng)
            if hit is None:
                # The ray escaped, it sees the background
                total_radiance += throughput * scene.ambient_emittance.at(wavelength)
                break

            outcome = hit.material.scatter(ray, hit, wavelength, rng)
            total_radiance += throughput * outcome.emitted
            if outcome.absorbed:
                break

            throughput *= outcome.attenuation
            if throughput == 0.0:
                break
            ray = outcome.scattered_ray

        if not math.isfinite(total_radiance):
            logger.debug("Discarding non-finite radiance sample at %.1f nm", wavelength * 1e9)
            return 0.0
        return total_radiance
