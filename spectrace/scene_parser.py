"""
Scene description parser.

Scenes are documents in TOML, YAML or JSON with:
- Ambient (background) emittance
- Camera configuration
- Surfaces with inline materials
- Optional render settings

Every spectral property is a table tagged by ``type``. Example scene file:
```toml
[ambient_emittance]
type = "Lorentzian"
maximum_at = 475e-9
fwhm = 15e-9
radiance = 10e9

[camera]
location = [-1, 2, -6]
look_at = [-0.5, 0.5, -1]
vfov = 45

[render]
width = 320
height = 240
samples = 64

[[surfaces]]
type = "Sphere"
center = [13, 9.5, 20.0]
radius = 5
material.emittance = { type = "BlackBody", temperature = 5557 }

[[surfaces]]
type = "Sphere"
center = [2, -0.5, 0.0]
radius = 0.5
material.transmittance = { refracted_index = { type = "FusedQuartz" } }
```
"""

from __future__ import annotations
import dataclasses
import json
import logging
import math
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .absorption import AttenuationCoefficient, ConstantCoefficient, WaterCoefficient, ZERO_COEFFICIENT
from .camera import Camera
from .exceptions import InvalidScene
from .materials import Material, Reflectance, Transmittance
from .refraction import AbsoluteRefractiveIndex, ConstantIndex, Cauchy2, Cauchy4, NAMED_MEDIA, VACUUM
from .renderer import RenderSettings
from .scene import Scene
from .shapes import AABB, Sphere, Surface
from .spectrum import (
    Attenuation, ConstantAttenuation, LorentzianAttenuation, SumAttenuation,
    Emittance, ConstantEmittance, BlackBodyEmittance, LorentzianEmittance,
    BLACK, WHITE,
)
from .vec3 import Vec3
from .volumes import UniformFog

logger = logging.getLogger(__name__)

_REQUIRED = object()


class SceneLoader(yaml.SafeLoader):
    """Safe YAML loader that also reads exponents without a dot, such as ``475e-9``.

    YAML 1.1 resolves those as strings; wavelengths are written in metres, so
    scene files use them everywhere.
    """


SceneLoader.add_implicit_resolver(
    'tag:yaml.org,2002:float',
    re.compile(r'''^(?:[-+]?[0-9][0-9_]*(?:\.[0-9_]*)?[eE][-+]?[0-9]+
        |[-+]?\.[0-9_]+[eE][-+]?[0-9]+)$''', re.X),
    list('-+0123456789.'),
)

# Render table keys and the RenderSettings fields they set
_SETTINGS_ALIASES = {
    'samples': 'samples_per_pixel',
    'depth': 'max_depth',
    'threads': 'num_threads',
}


class SceneParser:
    """Parser for scene description files."""

    def __init__(self):
        self.settings: Optional[RenderSettings] = None

    def parse_file(self, filepath: str) -> Scene:
        """Parse a scene file.

        The format is chosen by extension: ``.toml``, ``.json``, and
        ``.yaml``/``.yml``; anything else is read as YAML.

        Args:
            filepath: Path to the scene file

        Returns:
            The scene; render settings found in the file are kept in ``self.settings``

        Raises:
            InvalidScene: if the file is missing, malformed or describes an invalid scene
        """
        path = Path(filepath)
        if not path.is_file():
            raise InvalidScene(f"Scene file not found: {filepath}")

        content = path.read_text(encoding='utf-8')
        suffix = path.suffix.lower()
        try:
            if suffix == '.toml':
                data = tomllib.loads(content)
            elif suffix == '.json':
                data = json.loads(content)
            else:
                data = yaml.load(content, Loader=SceneLoader)
        except (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as error:
            raise InvalidScene(f"{filepath}: cannot decode scene: {error}") from error

        scene = self.parse_dict(data)
        logger.debug("Loaded %d surfaces from %s", len(scene), filepath)
        return scene

    def parse_dict(self, data: Dict[str, Any]) -> Scene:
        """Parse a scene from a dictionary.

        Args:
            data: Scene description dictionary

        Returns:
            The scene
        """
        data = _mapping(data, 'scene')
        _reject_unknown(data, 'scene', {'ambient_emittance', 'ambient_spectrum', 'camera', 'surfaces', 'render'})

        ambient = _field(data, 'scene', 'ambient_emittance', 'ambient_spectrum', default=None)
        ambient_emittance = BLACK if ambient is None else self._parse_emittance(ambient, 'ambient_emittance')

        camera_data = _field(data, 'scene', 'camera', default=None)
        camera = Camera() if camera_data is None else self._parse_camera(camera_data, 'camera')

        surfaces_data = _field(data, 'scene', 'surfaces', default=[])
        if not isinstance(surfaces_data, (list, tuple)):
            raise InvalidScene(f"surfaces: expected a list, got {type(surfaces_data).__name__}")
        surfaces = [
            self._parse_surface(surface_data, f'surfaces[{index}]')
            for index, surface_data in enumerate(surfaces_data)
        ]

        render_data = _field(data, 'scene', 'render', default=None)
        self.settings = RenderSettings() if render_data is None else self._parse_settings(render_data, 'render')

        return Scene(camera, surfaces, ambient_emittance)

    def _parse_camera(self, data: Any, path: str) -> Camera:
        """Parse camera section."""
        data = _mapping(data, path)
        _reject_unknown(data, path, {'location', 'look_at', 'up', 'vertical_fov', 'vfov'})
        defaults = Camera()
        return _build(
            path,
            Camera,
            location=_vec3(_field(data, path, 'location', default=list(defaults.location)), f'{path}.location'),
            look_at=_vec3(_field(data, path, 'look_at', default=list(defaults.look_at)), f'{path}.look_at'),
            up=_vec3(_field(data, path, 'up', default=list(defaults.up)), f'{path}.up'),
            vertical_fov=_number(
                _field(data, path, 'vertical_fov', 'vfov', default=defaults.vertical_fov), f'{path}.vertical_fov'
            ),
        )

    def _parse_surface(self, data: Any, path: str) -> Surface:
        """Parse one entry of the surfaces list."""
        data = _mapping(data, path)
        surface_type = _type_tag(data, path)
        material = self._parse_material(_field(data, path, 'material', default=None), f'{path}.material')

        if surface_type == 'Sphere':
            _reject_unknown(data, path, {'type', 'center', 'radius', 'material'})
            return _build(
                path,
                Sphere,
                _vec3(_field(data, path, 'center'), f'{path}.center'),
                _number(_field(data, path, 'radius'), f'{path}.radius'),
                material,
            )

        if surface_type == 'UniformFog':
            _reject_unknown(data, path, {'type', 'aabb', 'density', 'material'})
            aabb_path = f'{path}.aabb'
            aabb_data = _mapping(_field(data, path, 'aabb'), aabb_path)
            aabb = _build(
                aabb_path,
                AABB,
                _vec3(_field(aabb_data, aabb_path, 'minimum', 'min'), f'{aabb_path}.minimum'),
                _vec3(_field(aabb_data, aabb_path, 'maximum', 'max'), f'{aabb_path}.maximum'),
            )
            density = _number(_field(data, path, 'density', default=1.0), f'{path}.density')
            return _build(path, UniformFog, aabb, material, density)

        raise InvalidScene(f"{path}: unknown surface type `{surface_type}`")

    def _parse_material(self, data: Any, path: str) -> Material:
        """Parse an inline material; a missing material is a perfect absorber."""
        if data is None:
            return Material()
        data = _mapping(data, path)
        _reject_unknown(data, path, {'emittance', 'reflectance', 'transmittance'})

        emittance = _field(data, path, 'emittance', default=None)
        reflectance = _field(data, path, 'reflectance', default=None)
        transmittance = _field(data, path, 'transmittance', default=None)
        return Material(
            emittance=None if emittance is None else self._parse_emittance(emittance, f'{path}.emittance'),
            reflectance=None if reflectance is None else self._parse_reflectance(reflectance, f'{path}.reflectance'),
            transmittance=(
                None if transmittance is None
                else self._parse_transmittance(transmittance, f'{path}.transmittance')
            ),
        )

    def _parse_reflectance(self, data: Any, path: str) -> Reflectance:
        data = _mapping(data, path)
        _reject_unknown(data, path, {'attenuation', 'diffusion', 'diffuse', 'fuzz'})
        attenuation = _field(data, path, 'attenuation', default=None)
        diffusion = _field(data, path, 'diffusion', 'diffuse', default=None)
        fuzz = _field(data, path, 'fuzz', default=None)
        return _build(
            path,
            Reflectance,
            attenuation=WHITE if attenuation is None else self._parse_attenuation(attenuation, f'{path}.attenuation'),
            diffusion=None if diffusion is None else _number(diffusion, f'{path}.diffusion'),
            fuzz=None if fuzz is None else _number(fuzz, f'{path}.fuzz'),
        )

    def _parse_transmittance(self, data: Any, path: str) -> Transmittance:
        data = _mapping(data, path)
        _reject_unknown(
            data, path,
            {'refracted_index', 'index', 'refractive_index', 'incident_index', 'attenuation', 'coefficient'},
        )
        refracted = _field(data, path, 'refracted_index', 'index', 'refractive_index')
        incident = _field(data, path, 'incident_index', default=None)
        attenuation = _field(data, path, 'attenuation', default=None)
        coefficient = _field(data, path, 'coefficient', default=None)
        return _build(
            path,
            Transmittance,
            refracted_index=self._parse_refractive_index(refracted, f'{path}.refracted_index'),
            incident_index=(
                VACUUM if incident is None
                else self._parse_refractive_index(incident, f'{path}.incident_index')
            ),
            attenuation=WHITE if attenuation is None else self._parse_attenuation(attenuation, f'{path}.attenuation'),
            coefficient=(
                ZERO_COEFFICIENT if coefficient is None
                else self._parse_coefficient(coefficient, f'{path}.coefficient')
            ),
        )

    def _parse_attenuation(self, data: Any, path: str) -> Attenuation:
        """Parse an attenuation spectrum: Constant, Lorentzian or Sum."""
        data = _mapping(data, path)
        kind = _type_tag(data, path)

        if kind == 'Constant':
            _reject_unknown(data, path, {'type', 'intensity'})
            intensity = _number(_field(data, path, 'intensity', default=1.0), f'{path}.intensity')
            return _build(path, ConstantAttenuation, intensity)

        if kind == 'Lorentzian':
            _reject_unknown(
                data, path,
                {'type', 'maximum_at', 'maximum', 'max', 'full_width_at_half_maximum', 'fwhm',
                 'scale', 'intensity', 'coefficient'},
            )
            return _build(
                path,
                LorentzianAttenuation,
                maximum_at=_number(_field(data, path, 'maximum_at', 'maximum', 'max'), f'{path}.maximum_at'),
                full_width_at_half_maximum=_number(
                    _field(data, path, 'full_width_at_half_maximum', 'fwhm'), f'{path}.full_width_at_half_maximum'
                ),
                scale=_number(_field(data, path, 'scale', 'intensity', 'coefficient', default=1.0), f'{path}.scale'),
            )

        if kind == 'Sum':
            _reject_unknown(data, path, {'type', 'spectra'})
            spectra = _field(data, path, 'spectra', default=[])
            if not isinstance(spectra, (list, tuple)):
                raise InvalidScene(f"{path}.spectra: expected a list, got {type(spectra).__name__}")
            return SumAttenuation(tuple(
                self._parse_attenuation(item, f'{path}.spectra[{index}]')
                for index, item in enumerate(spectra)
            ))

        raise InvalidScene(f"{path}: unknown attenuation type `{kind}`")

    def _parse_emittance(self, data: Any, path: str) -> Emittance:
        """Parse an emission spectrum: Constant, BlackBody or Lorentzian."""
        data = _mapping(data, path)
        kind = _type_tag(data, path)

        if kind == 'Constant':
            _reject_unknown(data, path, {'type', 'radiance', 'density'})
            radiance = _number(_field(data, path, 'radiance', 'density'), f'{path}.radiance')
            return _build(path, ConstantEmittance, radiance)

        if kind in ('BlackBody', 'BlackBodyRadiation'):
            _reject_unknown(data, path, {'type', 'temperature'})
            temperature = _number(_field(data, path, 'temperature'), f'{path}.temperature')
            return _build(path, BlackBodyEmittance, temperature)

        if kind == 'Lorentzian':
            _reject_unknown(
                data, path,
                {'type', 'maximum_at', 'maximum', 'max', 'full_width_at_half_maximum', 'fwhm', 'radiance'},
            )
            return _build(
                path,
                LorentzianEmittance,
                maximum_at=_number(_field(data, path, 'maximum_at', 'maximum', 'max'), f'{path}.maximum_at'),
                full_width_at_half_maximum=_number(
                    _field(data, path, 'full_width_at_half_maximum', 'fwhm'), f'{path}.full_width_at_half_maximum'
                ),
                radiance=_number(_field(data, path, 'radiance'), f'{path}.radiance'),
            )

        raise InvalidScene(f"{path}: unknown emittance type `{kind}`")

    def _parse_refractive_index(self, data: Any, path: str) -> AbsoluteRefractiveIndex:
        """Parse a refractive index: Constant, Cauchy2, Cauchy4 or a named medium."""
        data = _mapping(data, path)
        kind = _type_tag(data, path)

        if kind in NAMED_MEDIA:
            _reject_unknown(data, path, {'type'})
            return NAMED_MEDIA[kind]

        if kind == 'Constant':
            _reject_unknown(data, path, {'type', 'index'})
            return _build(path, ConstantIndex, _number(_field(data, path, 'index'), f'{path}.index'))

        if kind == 'Cauchy2':
            _reject_unknown(data, path, {'type', 'a', 'b'})
            return _build(path, Cauchy2, *_numbers(data, path, 'a', 'b'))

        if kind == 'Cauchy4':
            _reject_unknown(data, path, {'type', 'a', 'b', 'c', 'd'})
            return _build(path, Cauchy4, *_numbers(data, path, 'a', 'b', 'c', 'd'))

        raise InvalidScene(f"{path}: unknown refractive index type `{kind}`")

    def _parse_coefficient(self, data: Any, path: str) -> AttenuationCoefficient:
        """Parse an absorption coefficient: Constant or Water."""
        data = _mapping(data, path)
        kind = _type_tag(data, path)

        if kind == 'Constant':
            _reject_unknown(data, path, {'type', 'coefficient'})
            return _build(path, ConstantCoefficient, _number(_field(data, path, 'coefficient'), f'{path}.coefficient'))

        if kind == 'Water':
            _reject_unknown(data, path, {'type', 'scale'})
            return _build(path, WaterCoefficient, _number(_field(data, path, 'scale'), f'{path}.scale'))

        raise InvalidScene(f"{path}: unknown absorption coefficient type `{kind}`")

    def _parse_settings(self, data: Any, path: str) -> RenderSettings:
        """Parse render settings section on top of the defaults."""
        data = _mapping(data, path)
        known = {field.name for field in dataclasses.fields(RenderSettings)}
        overrides = {}
        for key, value in data.items():
            name = _SETTINGS_ALIASES.get(key, key)
            if name not in known:
                raise InvalidScene(f"{path}: unknown setting `{key}`")
            if value is not None:
                value = _number(value, f'{path}.{key}')
                if isinstance(getattr(RenderSettings, name), int):
                    if not float(value).is_integer():
                        raise InvalidScene(f"{path}.{key}: expected an integer, got {value!r}")
                    value = int(value)
            overrides[name] = value
        try:
            return RenderSettings(**overrides)
        except TypeError as error:
            raise InvalidScene(f"{path}: {error}") from error


def _mapping(data: Any, path: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidScene(f"{path}: expected a table, got {type(data).__name__}")
    return data


def _field(data: Dict[str, Any], path: str, *names: str, default: Any = _REQUIRED) -> Any:
    """Look up the first of ``names`` present in ``data``; the first name is canonical."""
    present = [name for name in names if name in data]
    if len(present) > 1:
        raise InvalidScene(f"{path}: `{present[0]}` and `{present[1]}` set the same field")
    if present:
        return data[present[0]]
    if default is _REQUIRED:
        raise InvalidScene(f"{path}: missing required field `{names[0]}`")
    return default


def _reject_unknown(data: Dict[str, Any], path: str, allowed: set) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise InvalidScene(f"{path}: unknown field(s) {', '.join(f'`{key}`' for key in unknown)}")


def _type_tag(data: Dict[str, Any], path: str) -> str:
    tag = _field(data, path, 'type')
    if not isinstance(tag, str):
        raise InvalidScene(f"{path}.type: expected a string, got {tag!r}")
    return tag


def _number(value: Any, path: str) -> float:
    """Accept ints and floats, rejecting booleans and strings."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidScene(f"{path}: expected a number, got {value!r}")
    if isinstance(value, float) and math.isnan(value):
        raise InvalidScene(f"{path}: NaN is not a valid value")
    return value


def _numbers(data: Dict[str, Any], path: str, *names: str) -> Sequence[float]:
    return [_number(_field(data, path, name), f'{path}.{name}') for name in names]


def _vec3(data: Any, path: str) -> Vec3:
    """Parse a Vec3 from a list of three numbers or an {x, y, z} table."""
    if isinstance(data, (list, tuple)):
        if len(data) != 3:
            raise InvalidScene(f"{path}: a vector must have 3 components, got {len(data)}")
        components = [_number(value, f'{path}[{index}]') for index, value in enumerate(data)]
    elif isinstance(data, dict):
        _reject_unknown(data, path, {'x', 'y', 'z'})
        components = _numbers(data, path, 'x', 'y', 'z')
    else:
        raise InvalidScene(f"{path}: cannot parse a vector from {data!r}")
    return Vec3(*(float(component) for component in components))


def _build(path: str, factory, *args, **kwargs):
    """Call a constructor, prefixing validation errors with the document path."""
    try:
        return factory(*args, **kwargs)
    except InvalidScene as error:
        raise InvalidScene(f"{path}: {error}") from error


def load_scene(filepath: str) -> Scene:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file

    Returns:
        The scene
    """
    parser = SceneParser()
    return parser.parse_file(filepath)


def parse_scene(data: Dict[str, Any]) -> Scene:
    """Convenience function to parse a scene from a dictionary.

    Args:
        data: Scene description dictionary

    Returns:
        The scene
    """
    parser = SceneParser()
    return parser.parse_dict(data)
