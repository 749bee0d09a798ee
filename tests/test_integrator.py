"""Unit tests for the integrator.

Tests cover:
- Background gradient for escaping rays
- Depth budget and absorption returning black
- Mirror and diffuse bounces attenuating the background
- Full renders: empty scene, determinism, value range, progress callback
- Render target validation
"""

import logging

import numpy as np
import pytest

WIDTH = 8
HEIGHT = 6


def _camera(aspect_ratio=WIDTH / HEIGHT, **overrides):
    from src.tracer.camera.pinhole import PinholeCamera

    params = dict(
        lookfrom=(0.0, 1.0, 4.0),
        lookat=(0.0, 0.5, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=60.0,
        aspect_ratio=aspect_ratio,
    )
    params.update(overrides)
    return PinholeCamera(**params)


def _expected_background(camera, width, height, horizon=(1.0, 1.0, 1.0), zenith=(0.5, 0.7, 1.0)):
    """Background seen through every pixel center, top row first."""
    frame = camera.frame()
    image = np.zeros((height, width, 3))
    for row in range(height):
        j = height - 1 - row
        for i in range(width):
            s = (i + 0.5) / width
            t = (j + 0.5) / height
            point = frame["lower_left"] + s * frame["horizontal"] + t * frame["vertical"]
            direction = point - frame["origin"]
            blend = 0.5 * (direction[1] / np.linalg.norm(direction) + 1.0)
            image[row, i] = (1.0 - blend) * np.array(horizon) + blend * np.array(zenith)
    return image


class TestTraceRay:
    """Tests for single rays traced against the current scene."""

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ((0.0, 1.0, 0.0), (0.5, 0.7, 1.0)),
            ((0.0, -1.0, 0.0), (1.0, 1.0, 1.0)),
            ((1.0, 0.0, 0.0), (0.75, 0.85, 1.0)),
            ((0.0, 3.0, 0.0), (0.5, 0.7, 1.0)),
        ],
    )
    def test_miss_returns_background(self, direction, expected):
        from src.tracer.core.integrator import trace_single_ray

        color = trace_single_ray((0.0, 0.0, 0.0), direction, max_depth=5)
        assert color == pytest.approx(expected, abs=1e-5)

    def test_custom_background(self):
        from src.tracer.core.integrator import setup_background, trace_single_ray

        setup_background((0.2, 0.0, 0.0), (0.0, 0.0, 0.4))
        color = trace_single_ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), max_depth=5)
        assert color == pytest.approx((0.1, 0.0, 0.2), abs=1e-5)

    @pytest.mark.parametrize("depth", [0, -3])
    def test_no_depth_is_black(self, depth):
        from src.tracer.core.integrator import trace_single_ray

        color = trace_single_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), max_depth=depth)
        assert color == (0.0, 0.0, 0.0)

    def _mirror_floor(self, albedo=(0.5, 0.5, 0.5)):
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        mirror = scene.add_metal_material(albedo, fuzz=0.0)
        scene.add_horizontal_square((0.0, 0.0, 0.0), 10.0, mirror)
        return scene

    def test_mirror_reflects_sky(self):
        """Test a straight-down ray off a mirror sees the zenith times albedo."""
        from src.tracer.core.integrator import trace_single_ray

        self._mirror_floor()
        color = trace_single_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), max_depth=2)
        assert color == pytest.approx((0.25, 0.35, 0.5), abs=1e-5)

    def test_depth_budget_exhausted_is_black(self):
        """Test a path still bouncing when the budget runs out contributes black."""
        from src.tracer.core.integrator import trace_single_ray

        self._mirror_floor()
        color = trace_single_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), max_depth=1)
        assert color == (0.0, 0.0, 0.0)

    def test_black_diffuse_surface(self):
        from src.tracer.core.integrator import trace_single_ray
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        black = scene.add_lambertian_material((0.0, 0.0, 0.0))
        scene.add_sphere((0.0, 0.0, -3.0), 1.0, black)
        color = trace_single_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=10)
        assert color == pytest.approx((0.0, 0.0, 0.0))

    def test_diffuse_bounce_bounded_by_albedo(self):
        """Test one diffuse bounce off the floor sees at most albedo times the sky."""
        from src.tracer.core.integrator import trace_single_ray
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        gray = scene.add_lambertian_material((0.5, 0.5, 0.5))
        scene.add_horizontal_square((0.0, 0.0, 0.0), 10.0, gray)
        for stream in range(8):
            color = trace_single_ray(
                (0.0, 1.0, 0.0), (0.0, -1.0, 0.0), max_depth=2, stream=stream
            )
            assert 0.25 - 1e-5 <= color[0] <= 0.5 + 1e-5
            assert color[2] == pytest.approx(0.5, abs=1e-5)

    def test_absorbing_metal(self):
        """Test a metal ray scattered into the surface is absorbed."""
        from src.tracer.core.integrator import trace_single_ray
        from src.tracer.scene.manager import SceneManager

        scene = SceneManager()
        rough = scene.add_metal_material((1.0, 1.0, 1.0), fuzz=1.0)
        scene.add_horizontal_square((0.0, 0.0, 0.0), 1000.0, rough)

        colors = [
            trace_single_ray((0.0, 0.01, 0.0), (1.0, -0.001, 0.0), max_depth=2, stream=s)
            for s in range(64)
        ]
        absorbed = [c for c in colors if c == (0.0, 0.0, 0.0)]
        assert 0 < len(absorbed) < len(colors)


class TestRender:
    """Tests for the render entry point."""

    def test_empty_scene_matches_background(self):
        from src.tracer.core.config import RenderConfig
        from src.tracer.core.integrator import render
        from src.tracer.scene.manager import SceneManager

        camera = _camera()
        config = RenderConfig(
            width=WIDTH, height=HEIGHT, samples_per_pixel=3, max_depth=4, jitter=False
        )
        image = render(SceneManager(), camera, config)

        assert image.shape == (HEIGHT, WIDTH, 3)
        assert image.dtype == np.float32
        np.testing.assert_allclose(image, _expected_background(camera, WIDTH, HEIGHT), atol=1e-5)
        # Top row looks higher into the sky than the bottom row
        assert image[0, 0, 0] < image[-1, 0, 0]

    def _render_preset(self, seed, name="all_objects"):
        from src.tracer.core.config import RenderConfig
        from src.tracer.core.integrator import render
        from src.tracer.scene.presets import create_preset

        config = RenderConfig(width=18, height=12, samples_per_pixel=4, max_depth=6, seed=seed)
        scene, camera = create_preset(name, config.aspect_ratio)
        return render(scene, camera, config)

    def test_same_seed_same_image(self):
        first = self._render_preset(seed=11)
        second = self._render_preset(seed=11)
        np.testing.assert_array_equal(first, second)

    def test_different_seed_different_image(self):
        first = self._render_preset(seed=1)
        second = self._render_preset(seed=2)
        assert not np.array_equal(first, second)

    @pytest.mark.parametrize("name", ["sphere", "plane_cube", "all_objects_alt_camera"])
    def test_values_finite_and_in_range(self, name):
        image = self._render_preset(seed=0, name=name)
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        assert image.max() <= 1.0
        # The ground and objects darken part of the frame below pure sky
        assert image.min() < 0.5

    def test_callback_reports_every_pass(self):
        from src.tracer.core.config import RenderConfig
        from src.tracer.core.integrator import get_total_samples, render
        from src.tracer.scene.manager import SceneManager

        calls = []

        def on_progress(done, total):
            calls.append((done, total))

        config = RenderConfig(width=4, height=4, samples_per_pixel=5, max_depth=2)
        render(SceneManager(), _camera(aspect_ratio=1.0), config, callback=on_progress)

        assert calls == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]
        assert get_total_samples() == 5

    def test_aspect_mismatch_warns(self, caplog):
        from src.tracer.core.config import RenderConfig
        from src.tracer.core.integrator import render
        from src.tracer.scene.manager import SceneManager

        config = RenderConfig(width=4, height=4, samples_per_pixel=1, max_depth=1)
        with caplog.at_level(logging.WARNING):
            render(SceneManager(), _camera(aspect_ratio=2.0), config)
        assert "aspect ratio" in caplog.text

    def test_render_uses_its_own_scene(self):
        """Test building another scene before rendering does not leak into the image."""
        from src.tracer.core.config import RenderConfig
        from src.tracer.core.integrator import render
        from src.tracer.scene.manager import SceneManager

        camera = _camera()
        config = RenderConfig(
            width=WIDTH, height=HEIGHT, samples_per_pixel=1, max_depth=3, jitter=False
        )
        empty = SceneManager()

        other = SceneManager()
        mat = other.add_lambertian_material((0.0, 0.0, 0.0))
        other.add_sphere((0.0, 0.5, 0.0), 50.0, mat)

        image = render(empty, camera, config)
        np.testing.assert_allclose(image, _expected_background(camera, WIDTH, HEIGHT), atol=1e-5)


class TestRenderTarget:
    """Tests for render target setup."""

    @pytest.mark.parametrize("width, height", [(0, 10), (10, -1), (5000, 10), (10, 5000)])
    def test_invalid_dimensions(self, width, height):
        from src.tracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_dimensions_stored(self):
        from src.tracer.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(32, 16)
        assert get_image_dimensions() == (32, 16)
