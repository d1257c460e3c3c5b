"""Tests for the scene description parser."""

import json
from pathlib import Path

import numpy as np
import pytest

from spectrace.absorption import WaterCoefficient, ZERO_COEFFICIENT
from spectrace.exceptions import ConfigurationError, InvalidScene
from spectrace.integrator import PathTracer
from spectrace.ray import Ray
from spectrace.refraction import ConstantIndex, Cauchy2, FUSED_QUARTZ, VACUUM, WATER
from spectrace.scene_parser import SceneParser, load_scene, parse_scene
from spectrace.shapes import Sphere
from spectrace.spectrum import (
    BlackBodyEmittance, ConstantAttenuation, ConstantEmittance, LorentzianAttenuation,
    LorentzianEmittance, SumAttenuation, BLACK, WHITE,
)
from spectrace.vec3 import Vec3, Point3
from spectrace.volumes import UniformFog

SCENES_DIR = Path(__file__).resolve().parent.parent / "scenes"


def sphere(**material):
    return {"type": "Sphere", "center": [0, 0, 0], "radius": 1, "material": material}


def single_material(material_data):
    scene = parse_scene({"surfaces": [sphere(**material_data)]})
    return scene.surfaces[0].material


class TestDocument:
    """Test top-level scene parsing."""

    def test_empty_scene_uses_defaults(self):
        scene = parse_scene({})
        assert len(scene) == 0
        assert scene.ambient_emittance is BLACK
        assert scene.camera.location == Point3(0, 0, -1)
        assert scene.camera.vertical_fov == 45.0

    def test_camera(self):
        scene = parse_scene({"camera": {"location": [-1, 2, -6], "look_at": [0, 0, 0], "vfov": 30}})
        assert scene.camera.location == Point3(-1, 2, -6)
        assert scene.camera.vertical_fov == 30

    def test_camera_vector_as_table(self):
        scene = parse_scene({"camera": {"location": {"x": 0, "y": 1, "z": -3}}})
        assert scene.camera.location == Point3(0, 1, -3)

    def test_ambient_alias(self):
        scene = parse_scene({"ambient_spectrum": {"type": "Constant", "radiance": 2.0}})
        assert scene.ambient_emittance == ConstantEmittance(2.0)

    def test_unknown_top_level_key(self):
        with pytest.raises(InvalidScene, match="lights"):
            parse_scene({"lights": []})

    def test_root_must_be_a_table(self):
        with pytest.raises(InvalidScene):
            parse_scene([1, 2, 3])

    def test_surfaces_keep_document_order(self):
        scene = parse_scene({"surfaces": [
            {"type": "Sphere", "center": [0, 0, 0], "radius": 1},
            {"type": "UniformFog", "aabb": {"min": [-1, -1, -1], "max": [1, 1, 1]}},
        ]})
        assert isinstance(scene.surfaces[0], Sphere)
        assert isinstance(scene.surfaces[1], UniformFog)
        assert scene.surfaces[1].density == 1.0


class TestMinimalDocument:
    """Test that a parsed minimal scene traces like the document says."""

    def test_escaping_ray_returns_ambient(self):
        scene = parse_scene({
            "ambient_emittance": {"type": "Constant", "radiance": 0.25},
            "surfaces": [{"type": "Sphere", "center": [0, 0, 10], "radius": 1}],
        })
        assert scene.surfaces[0].material.is_black()

        ray = Ray(Point3(0, 0, 0), Vec3(0, 1, 0))
        radiance = PathTracer().trace(scene, ray, 550e-9, np.random.default_rng(0))
        assert radiance == 0.25

    def test_ray_hitting_default_material_is_black(self):
        scene = parse_scene({
            "ambient_emittance": {"type": "Constant", "radiance": 0.25},
            "surfaces": [{"type": "Sphere", "center": [0, 0, 10], "radius": 1}],
        })
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, 1))
        assert PathTracer().trace(scene, ray, 550e-9, np.random.default_rng(0)) == 0.0


class TestSurfaces:
    """Test surface entries."""

    def test_sphere(self):
        scene = parse_scene({"surfaces": [{"type": "Sphere", "center": [1, 2, 3], "radius": 0.5}]})
        surface = scene.surfaces[0]
        assert surface.center == Point3(1, 2, 3)
        assert surface.radius == 0.5
        assert surface.material.is_black

    def test_fog(self):
        scene = parse_scene({"surfaces": [{
            "type": "UniformFog",
            "density": 0.25,
            "aabb": {"minimum": [0, 0, 0], "maximum": [1, 2, 3]},
        }]})
        fog = scene.surfaces[0]
        assert fog.density == 0.25
        assert fog.aabb.maximum == Point3(1, 2, 3)

    def test_unknown_surface_type(self):
        with pytest.raises(InvalidScene, match=r"surfaces\[0\]"):
            parse_scene({"surfaces": [{"type": "Torus"}]})

    def test_missing_radius(self):
        with pytest.raises(InvalidScene, match="radius"):
            parse_scene({"surfaces": [{"type": "Sphere", "center": [0, 0, 0]}]})

    def test_negative_radius_names_the_surface(self):
        with pytest.raises(InvalidScene, match=r"surfaces\[1\]"):
            parse_scene({"surfaces": [
                {"type": "Sphere", "center": [0, 0, 0], "radius": 1},
                {"type": "Sphere", "center": [0, 0, 0], "radius": -1},
            ]})

    @pytest.mark.parametrize("center", [[0, 0], [0, 0, "a"], "origin", [0, True, 0]])
    def test_malformed_vector(self, center):
        with pytest.raises(InvalidScene, match="center"):
            parse_scene({"surfaces": [{"type": "Sphere", "center": center, "radius": 1}]})

    def test_inverted_aabb(self):
        with pytest.raises(InvalidScene, match="aabb"):
            parse_scene({"surfaces": [{"type": "UniformFog", "aabb": {"min": [1, 1, 1], "max": [0, 0, 0]}}]})


class TestMaterials:
    """Test material and spectrum parsing."""

    def test_black_body_emittance(self):
        material = single_material({"emittance": {"type": "BlackBody", "temperature": 5557}})
        assert material.emittance == BlackBodyEmittance(5557)

    def test_black_body_alias(self):
        material = single_material({"emittance": {"type": "BlackBodyRadiation", "temperature": 3000}})
        assert material.emittance == BlackBodyEmittance(3000)

    def test_constant_emittance_density_alias(self):
        material = single_material({"emittance": {"type": "Constant", "density": 5.0}})
        assert material.emittance == ConstantEmittance(5.0)

    def test_lorentzian_emittance(self):
        material = single_material({
            "emittance": {"type": "Lorentzian", "max": 475e-9, "fwhm": 15e-9, "radiance": 1e10},
        })
        assert material.emittance == LorentzianEmittance(475e-9, 15e-9, 1e10)

    def test_reflectance(self):
        material = single_material({"reflectance": {
            "attenuation": {"type": "Lorentzian", "maximum": 570e-9, "fwhm": 100e-9},
            "diffuse": 0.5,
            "fuzz": 0.02,
        }})
        assert material.reflectance.attenuation == LorentzianAttenuation(570e-9, 100e-9)
        assert material.reflectance.diffusion == 0.5
        assert material.reflectance.fuzz == 0.02

    def test_reflectance_defaults_to_white(self):
        material = single_material({"reflectance": {}})
        assert material.reflectance.attenuation is WHITE

    def test_constant_attenuation_default_intensity(self):
        material = single_material({"reflectance": {"attenuation": {"type": "Constant"}}})
        assert material.reflectance.attenuation == ConstantAttenuation(1.0)

    def test_sum_attenuation(self):
        material = single_material({"reflectance": {"attenuation": {
            "type": "Sum",
            "spectra": [
                {"type": "Constant", "intensity": 0.5},
                {"type": "Lorentzian", "maximum": 480e-9, "fwhm": 50e-9, "intensity": 0.5},
            ],
        }}})
        assert material.reflectance.attenuation == SumAttenuation((
            ConstantAttenuation(0.5),
            LorentzianAttenuation(480e-9, 50e-9, 0.5),
        ))

    def test_transmittance_named_media(self):
        material = single_material({"transmittance": {
            "refracted_index": {"type": "Water"},
            "coefficient": {"type": "Water", "scale": 0.05},
        }})
        assert material.transmittance.refracted_index is WATER
        assert material.transmittance.incident_index is VACUUM
        assert material.transmittance.coefficient == WaterCoefficient(0.05)

    @pytest.mark.parametrize("name", ["FusedQuartz", "FusedSilica", "QuartzGlass"])
    def test_fused_quartz_aliases(self, name):
        material = single_material({"transmittance": {"index": {"type": name}}})
        assert material.transmittance.refracted_index is FUSED_QUARTZ

    def test_explicit_indices(self):
        material = single_material({"transmittance": {
            "refractive_index": {"type": "Cauchy2", "a": 1.5, "b": 4e-15},
            "incident_index": {"type": "Constant", "index": 1.33},
        }})
        assert material.transmittance.refracted_index == Cauchy2(1.5, 4e-15)
        assert material.transmittance.incident_index == ConstantIndex(1.33)
        assert material.transmittance.coefficient is ZERO_COEFFICIENT

    def test_unknown_spectrum_type(self):
        with pytest.raises(InvalidScene, match="unknown emittance type"):
            single_material({"emittance": {"type": "Laser"}})

    def test_missing_type(self):
        with pytest.raises(InvalidScene, match="type"):
            single_material({"emittance": {"temperature": 5000}})

    def test_invalid_width_names_the_path(self):
        with pytest.raises(InvalidScene, match=r"surfaces\[0\]\.material\.reflectance\.attenuation"):
            single_material({"reflectance": {"attenuation": {"type": "Lorentzian", "maximum": 500e-9, "fwhm": 0}}})

    def test_conflicting_aliases(self):
        with pytest.raises(InvalidScene, match="same field"):
            single_material({"reflectance": {"diffusion": 0.5, "diffuse": 0.4}})

    def test_misspelled_field(self):
        with pytest.raises(InvalidScene, match="difusion"):
            single_material({"reflectance": {"difusion": 0.5}})

    def test_transmittance_requires_index(self):
        with pytest.raises(InvalidScene, match="refracted_index"):
            single_material({"transmittance": {}})


class TestRenderSection:
    """Test render settings in scene files."""

    def test_defaults_without_section(self):
        parser = SceneParser()
        parser.parse_dict({})
        assert parser.settings.width == 800

    def test_aliases(self):
        parser = SceneParser()
        parser.parse_dict({"render": {"width": 64, "height": 32, "samples": 4, "threads": 1, "seed": 7}})
        assert parser.settings.width == 64
        assert parser.settings.samples_per_pixel == 4
        assert parser.settings.num_threads == 1
        assert parser.settings.seed == 7

    def test_unknown_setting(self):
        with pytest.raises(InvalidScene, match="exposure"):
            SceneParser().parse_dict({"render": {"exposure": 2}})

    def test_fractional_integer(self):
        with pytest.raises(InvalidScene, match="width"):
            SceneParser().parse_dict({"render": {"width": 10.5}})

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError):
            SceneParser().parse_dict({"render": {"samples": 0}})


class TestFiles:
    """Test loading scene files in every format."""

    def test_example_scene(self):
        parser = SceneParser()
        scene = parser.parse_file(str(SCENES_DIR / "spheres.toml"))
        assert len(scene) == 7
        assert scene.surfaces[0].material.emittance == BlackBodyEmittance(5557)
        assert isinstance(scene.ambient_emittance, LorentzianEmittance)
        assert parser.settings.width == 320

    def test_json(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text(json.dumps({"surfaces": [sphere(emittance={"type": "Constant", "radiance": 1.0})]}))
        scene = load_scene(str(path))
        assert scene.surfaces[0].material.emittance == ConstantEmittance(1.0)

    def test_yaml(self, tmp_path):
        path = tmp_path / "scene.yaml"
        path.write_text(
            "camera:\n"
            "  location: [0, 1, -4]\n"
            "surfaces:\n"
            "  - type: Sphere\n"
            "    center: [0, 0, 0]\n"
            "    radius: 1\n"
            "    material:\n"
            "      reflectance:\n"
            "        attenuation: {type: Lorentzian, maximum_at: 520e-9, fwhm: 100e-9}\n"
        )
        scene = load_scene(str(path))
        assert scene.camera.location == Point3(0, 1, -4)
        assert scene.surfaces[0].material.reflectance.attenuation == LorentzianAttenuation(520e-9, 100e-9)

    def test_yaml_exponents_without_dot(self, tmp_path):
        path = tmp_path / "scene.yaml"
        path.write_text(
            "ambient_emittance: {type: Lorentzian, maximum_at: 475e-9, fwhm: 2E-8, radiance: 1e3}\n"
            "surfaces:\n"
            "  - type: UniformFog\n"
            "    aabb: {min: [-1, -1, -1], max: [1, 1, 1]}\n"
            "    density: .5e1\n"
        )
        scene = load_scene(str(path))
        assert scene.ambient_emittance == LorentzianEmittance(475e-9, 20e-9, 1000.0)
        assert scene.surfaces[0].density == 5.0

    def test_yaml_strings_stay_strings(self, tmp_path):
        path = tmp_path / "scene.yaml"
        path.write_text("surfaces:\n  - type: e5\n")
        with pytest.raises(InvalidScene, match="e5"):
            load_scene(str(path))

    def test_toml(self, tmp_path):
        path = tmp_path / "scene.toml"
        path.write_text(
            "[[surfaces]]\n"
            "type = \"Sphere\"\n"
            "center = [0, 0, 0]\n"
            "radius = 2\n"
            "material.emittance = { type = \"BlackBody\", temperature = 4000 }\n"
        )
        scene = load_scene(str(path))
        assert scene.surfaces[0].radius == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidScene, match="not found"):
            load_scene(str(tmp_path / "missing.toml"))

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[camera\nlocation = ")
        with pytest.raises(InvalidScene, match="cannot decode"):
            load_scene(str(path))
