"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, normalize, length, reflect)
- near_zero degenerate-vector detection
"""

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from src.tracer.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([1.0, 2.0, 3.0])

    def test_ray_at_positive_t(self):
        """Test ray_at computes origin + t * direction."""
        from src.tracer.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 0.0, 0.0), vec3(0.0, 2.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([1.0, 5.0, 0.0])


class TestVectorUtilities:
    """Tests for the vector helper functions."""

    def test_dot_cross_length(self):
        """Test dot, cross, length and length_squared on simple vectors."""
        from src.tracer.core.ray import cross, dot, length, length_squared, vec3

        dot_result = ti.field(dtype=ti.f32, shape=())
        cross_result = ti.field(dtype=ti.math.vec3, shape=())
        len_result = ti.field(dtype=ti.f32, shape=())
        len_sq_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            a = vec3(1.0, 2.0, 3.0)
            b = vec3(4.0, 5.0, 6.0)
            dot_result[None] = dot(a, b)
            cross_result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))
            len_result[None] = length(vec3(3.0, 4.0, 0.0))
            len_sq_result[None] = length_squared(vec3(3.0, 4.0, 0.0))

        test_kernel()
        assert dot_result[None] == pytest.approx(32.0)
        assert cross_result[None].to_numpy() == pytest.approx([0.0, 0.0, 1.0])
        assert len_result[None] == pytest.approx(5.0)
        assert len_sq_result[None] == pytest.approx(25.0)

    def test_normalize_gives_unit_length(self):
        """Test normalize returns a unit vector with the same direction."""
        from src.tracer.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(0.0, 3.0, 4.0))

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([0.0, 0.6, 0.8], abs=1e-6)

    def test_reflect_about_normal(self):
        """Test reflect mirrors the normal component and keeps the tangent."""
        from src.tracer.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([1.0, 1.0, 0.0])

    @pytest.mark.parametrize(
        "vector, expected",
        [
            ((0.0, 0.0, 0.0), 1),
            ((1e-9, -1e-9, 1e-9), 1),
            ((1e-3, 0.0, 0.0), 0),
            ((0.0, 0.0, -1.0), 0),
        ],
    )
    def test_near_zero(self, vector, expected):
        """Test near_zero flags only vectors small in every component."""
        from src.tracer.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(x: ti.f32, y: ti.f32, z: ti.f32):
            result[None] = near_zero(vec3(x, y, z))

        test_kernel(*vector)
        assert result[None] == expected
