"""Unit tests for the camera module.

Tests cover:
- Camera validation
- Orthonormal basis computation
- Ray generation for center and corner coordinates
- Pixel-center and jittered sampling
- Thin-lens rays converging on the focus plane
"""

import math

import numpy as np
import pytest
import taichi as ti


def _camera(**overrides):
    from src.tracer.camera.pinhole import PinholeCamera

    params = dict(
        lookfrom=(0.0, 0.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
    params.update(overrides)
    return PinholeCamera(**params)


def _ray_direction(s, t):
    from src.tracer.camera.pinhole import get_ray

    origin = ti.Vector.field(3, dtype=ti.f32, shape=())
    direction = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(s_coord: ti.f32, t_coord: ti.f32):
        ray = get_ray(s_coord, t_coord)
        origin[None] = ray.origin
        direction[None] = ray.direction

    test_kernel(s, t)
    return origin[None].to_numpy(), direction[None].to_numpy()


class TestCameraValidation:
    """Tests for rejecting parameters that cannot form a camera."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"lookat": (0.0, 0.0, 3.0)},
            {"vup": (0.0, 0.0, 0.0)},
            {"vup": (0.0, 0.0, 1.0)},
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"aperture": -0.1},
            {"focus_dist": 0.0},
            {"lookfrom": (0.0, 1.0)},
        ],
    )
    def test_invalid_parameters(self, overrides):
        with pytest.raises(ValueError):
            _camera(**overrides)


class TestCameraFrame:
    """Tests for the host-side frame."""

    def test_orthonormal_basis(self):
        frame = _camera(lookfrom=(3.0, 2.0, 4.0), lookat=(0.0, 1.0, 0.0)).frame()
        u, v, w = frame["u"], frame["v"], frame["w"]
        for axis in (u, v, w):
            assert np.linalg.norm(axis) == pytest.approx(1.0, abs=1e-6)
        assert float(u @ v) == pytest.approx(0.0, abs=1e-6)
        assert float(u @ w) == pytest.approx(0.0, abs=1e-6)
        assert float(v @ w) == pytest.approx(0.0, abs=1e-6)

    def test_default_orientation(self):
        frame = _camera().frame()
        assert frame["u"] == pytest.approx([1.0, 0.0, 0.0], abs=1e-6)
        assert frame["v"] == pytest.approx([0.0, 1.0, 0.0], abs=1e-6)
        assert frame["w"] == pytest.approx([0.0, 0.0, 1.0], abs=1e-6)

    def test_viewport_scales_with_fov_and_aspect(self):
        frame = _camera(vfov=60.0, aspect_ratio=2.0, focus_dist=3.0).frame()
        viewport_height = 3.0 * 2.0 * math.tan(math.radians(30.0))
        assert np.linalg.norm(frame["vertical"]) == pytest.approx(viewport_height, rel=1e-5)
        assert np.linalg.norm(frame["horizontal"]) == pytest.approx(
            2.0 * viewport_height, rel=1e-5
        )
        assert frame["lens_radius"] == 0.0

    def test_setup_camera_uploads_frame(self):
        from src.tracer.camera.pinhole import get_camera_info, setup_camera

        camera = _camera(aperture=0.5)
        setup_camera(camera)
        info = get_camera_info()
        assert info["origin"] == pytest.approx((0.0, 0.0, 3.0))
        assert info["lens_radius"] == pytest.approx(0.25)
        assert info["lower_left"] == pytest.approx(tuple(camera.frame()["lower_left"]), abs=1e-6)

    def test_camera_origin_in_kernel(self):
        from src.tracer.camera.pinhole import get_camera_origin, setup_camera

        setup_camera(_camera(lookfrom=(1.0, 2.0, 3.0)))
        origin = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            origin[None] = get_camera_origin()

        test_kernel()
        assert origin[None].to_numpy() == pytest.approx([1.0, 2.0, 3.0])


class TestRayGeneration:
    """Tests for get_ray."""

    def test_center_ray_points_at_lookat(self):
        from src.tracer.camera.pinhole import setup_camera

        setup_camera(_camera(lookfrom=(1.0, 4.0, 6.0), lookat=(0.0, 1.0, 1.0), aspect_ratio=1.5))
        origin, direction = _ray_direction(0.5, 0.5)
        expected = np.array([-1.0, -3.0, -5.0]) / math.sqrt(35.0)
        assert origin == pytest.approx([1.0, 4.0, 6.0])
        assert direction == pytest.approx(expected, abs=1e-5)

    @pytest.mark.parametrize(
        "s, t, expected",
        [
            (0.0, 0.0, [-1.0, -1.0, -1.0]),
            (1.0, 0.0, [1.0, -1.0, -1.0]),
            (0.0, 1.0, [-1.0, 1.0, -1.0]),
            (1.0, 1.0, [1.0, 1.0, -1.0]),
        ],
    )
    def test_corner_rays(self, s, t, expected):
        """Test a 90 degree square viewport spans 45 degrees to each edge."""
        from src.tracer.camera.pinhole import setup_camera

        setup_camera(_camera())
        _, direction = _ray_direction(s, t)
        assert direction == pytest.approx(np.array(expected) / math.sqrt(3.0), abs=1e-5)

    def test_focus_distance_does_not_change_pinhole_rays(self):
        from src.tracer.camera.pinhole import setup_camera

        setup_camera(_camera(focus_dist=7.0))
        _, direction = _ray_direction(1.0, 1.0)
        assert direction == pytest.approx(np.array([1.0, 1.0, -1.0]) / math.sqrt(3.0), abs=1e-5)


def _pixel_rays(width, height, pixel_i, pixel_j, jitter, count=256):
    from src.tracer.camera.pinhole import get_ray_jittered

    origins = ti.Vector.field(3, dtype=ti.f32, shape=count)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=count)

    @ti.kernel
    def test_kernel(i: ti.i32, j: ti.i32, w: ti.i32, h: ti.i32, jit: ti.i32):
        for k in origins:
            ray = get_ray_jittered(i, j, w, h, k, jit)
            origins[k] = ray.origin
            directions[k] = ray.direction

    test_kernel(pixel_i, pixel_j, width, height, jitter)
    return origins.to_numpy(), directions.to_numpy()


class TestPixelSampling:
    """Tests for get_ray_jittered."""

    def test_no_jitter_uses_pixel_center(self):
        from src.tracer.camera.pinhole import setup_camera

        setup_camera(_camera())
        _, directions = _pixel_rays(4, 4, 3, 0, jitter=0, count=8)
        # Pixel (3, 0) center sits at s = 0.875, t = 0.125
        expected = np.array([0.75, -0.75, -1.0])
        expected /= np.linalg.norm(expected)
        for direction in directions:
            assert direction == pytest.approx(expected, abs=1e-5)

    def test_jitter_stays_inside_pixel(self):
        from src.tracer.camera.pinhole import setup_camera

        setup_camera(_camera())
        _, directions = _pixel_rays(4, 4, 1, 2, jitter=1)
        # Project back onto the z = 2 image plane of the unit viewport
        plane = directions / -directions[:, 2:3]
        s = (plane[:, 0] + 1.0) / 2.0
        t = (plane[:, 1] + 1.0) / 2.0
        assert np.all((s >= 0.25 - 1e-5) & (s <= 0.5 + 1e-5))
        assert np.all((t >= 0.5 - 1e-5) & (t <= 0.75 + 1e-5))
        assert s.std() > 0.01

    def test_thin_lens_rays_meet_on_focus_plane(self):
        from src.tracer.camera.pinhole import setup_camera

        camera = _camera(aperture=1.0, focus_dist=3.0)
        setup_camera(camera)
        origins, directions = _pixel_rays(4, 4, 2, 1, jitter=0)

        frame = camera.frame()
        focus_point = (
            frame["lower_left"] + 0.625 * frame["horizontal"] + 0.375 * frame["vertical"]
        )
        offsets = origins - np.array([0.0, 0.0, 3.0])
        assert np.all(np.linalg.norm(offsets, axis=1) <= 0.5 + 1e-5)
        assert np.all(np.abs(offsets[:, 2]) < 1e-6)
        assert offsets.std() > 0.01

        to_focus = focus_point - origins
        to_focus /= np.linalg.norm(to_focus, axis=1, keepdims=True)
        assert np.allclose(directions, to_focus, atol=1e-4)
