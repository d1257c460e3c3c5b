"""
Spectrace - A Python Spectral Path Tracer

Renders scenes by tracing light one wavelength at a time:
- Spectral emission (black body, Lorentzian lines) and attenuation
- Dispersive refraction with exact Fresnel reflectance
- Beer-Lambert absorption and homogeneous fog
- CIE 1931 colour reduction to sRGB
- Multi-threaded, reproducible tile rendering
"""

__version__ = "0.1.0"
__author__ = "Spectrace Team"

from .vec3 import Vec3, Point3
from .ray import Ray
from .exceptions import InvalidScene, ConfigurationError, RenderCancelled
from .spectrum import (
    Attenuation, ConstantAttenuation, LorentzianAttenuation, SumAttenuation,
    Emittance, ConstantEmittance, BlackBodyEmittance, LorentzianEmittance,
    lorentzian, black_body, peak_wavelength, BLACK, WHITE
)
from .refraction import (
    AbsoluteRefractiveIndex, ConstantIndex, Cauchy2, Cauchy4,
    RelativeRefractiveIndex, VACUUM, WATER, FUSED_QUARTZ, NAMED_MEDIA
)
from .absorption import AttenuationCoefficient, ConstantCoefficient, WaterCoefficient, ZERO_COEFFICIENT
from .materials import Material, Reflectance, Transmittance, ScatterOutcome, ABSORBER
from .shapes import AABB, HitRecord, Surface, Sphere
from .volumes import UniformFog
from .camera import Camera, Viewport
from .scene import Scene
from .integrator import PathTracer
from .colorimetry import color_matching, xyz_to_linear_srgb
from .renderer import Renderer, RenderSettings
from .tonemapping import to_ldr, linear_to_srgb, apply_gamma
from .scene_parser import SceneParser, load_scene, parse_scene
