"""Unit tests for the built-in preset scenes."""

import pytest


class TestPresets:
    """Tests for preset construction."""

    @pytest.mark.parametrize("name", ["sphere", "plane_cube", "all_objects", "all_objects_alt_camera"])
    def test_every_preset_builds(self, name):
        from src.tracer.scene.presets import PRESET_NAMES, create_preset

        assert name in PRESET_NAMES
        scene, camera = create_preset(name, aspect_ratio=2.0)
        assert camera.aspect_ratio == 2.0
        assert camera.vfov == 43.0
        assert camera.aperture == 0.05
        assert camera.focus_dist == 10.0
        assert scene.get_square_count() == 1
        assert scene.squares[0].normal == (0.0, 1.0, 0.0)

    def test_unknown_preset(self):
        from src.tracer.scene.presets import create_preset

        with pytest.raises(ValueError, match="Unknown preset"):
            create_preset("teapot")

    def test_sphere_preset(self):
        from src.tracer.scene.manager import MaterialType
        from src.tracer.scene.presets import create_sphere_scene

        scene, camera = create_sphere_scene()
        assert scene.get_sphere_count() == 1
        assert scene.spheres[0].center == (0.0, 1.0, 0.0)
        material = scene.get_material_info(scene.spheres[0].material_id)
        assert material.material_type == MaterialType.METAL
        assert camera.lookfrom == (0.0, 2.0, 5.0)

    def test_all_objects_layout(self):
        from src.tracer.scene.presets import create_all_objects_scene

        scene, camera = create_all_objects_scene()
        assert scene.get_primitive_count() == 4
        assert scene.get_material_count() == 4
        assert scene.cubes[0].box_min == (-4.5, 0.0, 0.0)
        assert scene.cubes[0].box_max == (-2.5, 2.0, 2.0)
        cylinder = scene.cylinders[0]
        assert (cylinder.radius, cylinder.height) == (0.8, 2.0)
        assert camera.lookat == (0.0, 1.0, 1.0)

    def test_alt_camera_shares_objects(self):
        from src.tracer.scene.presets import (
            create_all_objects_alt_camera_scene,
            create_all_objects_scene,
        )

        scene, camera = create_all_objects_scene()
        alt_scene, alt_camera = create_all_objects_alt_camera_scene()
        assert alt_scene.to_dict() == scene.to_dict()
        assert alt_camera.lookfrom[1] > camera.lookfrom[1]
