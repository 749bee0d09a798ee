"""Unit tests for square intersection and basis construction."""

import numpy as np
import pytest
import taichi as ti


def _trace_square(origin, direction, center=(0, 0, 0), normal=(0, 1, 0), size=2.0):
    from src.tracer.geometry.square import Square, hit_square, square_basis, vec3

    u_axis, v_axis = square_basis(normal)

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    normal_out = ti.field(dtype=ti.math.vec3, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, c: vec3, n: vec3, u: vec3, v: vec3, s: ti.f32):
        square = Square(center=c, normal=n, u_axis=u, v_axis=v, size=s)
        record = hit_square(o, d, square, 0.001, 1000.0)
        hit[None] = record.hit
        t_val[None] = record.t
        normal_out[None] = record.normal
        front_face[None] = record.front_face

    test_kernel(
        vec3(*origin),
        vec3(*direction),
        vec3(*center),
        vec3(*normal),
        vec3(*u_axis.tolist()),
        vec3(*v_axis.tolist()),
        size,
    )
    return {
        "hit": hit[None],
        "t": t_val[None],
        "normal": normal_out[None].to_numpy(),
        "front_face": front_face[None],
    }


class TestSquareBasis:
    """Tests for the host-side in-plane basis."""

    @pytest.mark.parametrize(
        "normal",
        [(0, 1, 0), (1, 0, 0), (0, 0, 1), (-1, 0, 0), (1, 1, 1), (0.95, 0.1, 0.0)],
    )
    def test_basis_is_orthonormal(self, normal):
        from src.tracer.geometry.square import square_basis

        n = np.asarray(normal, dtype=np.float64)
        n /= np.linalg.norm(n)
        u_axis, v_axis = square_basis(normal)

        assert np.linalg.norm(u_axis) == pytest.approx(1.0, abs=1e-6)
        assert np.linalg.norm(v_axis) == pytest.approx(1.0, abs=1e-6)
        assert float(u_axis @ v_axis) == pytest.approx(0.0, abs=1e-6)
        assert float(u_axis @ n) == pytest.approx(0.0, abs=1e-6)
        assert float(v_axis @ n) == pytest.approx(0.0, abs=1e-6)

    def test_zero_normal_raises(self):
        from src.tracer.geometry.square import square_basis

        with pytest.raises(ValueError):
            square_basis((0.0, 0.0, 0.0))


class TestSquareIntersection:
    """Tests for ray-square intersection."""

    def test_hit_from_above(self):
        rec = _trace_square((0.3, 5.0, -0.2), (0.0, -1.0, 0.0))
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(5.0, abs=1e-5)
        assert rec["normal"] == pytest.approx([0.0, 1.0, 0.0], abs=1e-6)
        assert rec["front_face"] == 1

    def test_hit_from_below_is_back_face(self):
        rec = _trace_square((0.3, -5.0, -0.2), (0.0, 1.0, 0.0))
        assert rec["hit"] == 1
        assert rec["front_face"] == 0
        assert rec["normal"] == pytest.approx([0.0, -1.0, 0.0], abs=1e-6)

    def test_edge_is_inclusive(self):
        """Test a hit exactly on the edge counts."""
        rec = _trace_square((1.0, 5.0, 0.0), (0.0, -1.0, 0.0))
        assert rec["hit"] == 1

    def test_outside_edge_misses(self):
        rec = _trace_square((1.01, 5.0, 0.0), (0.0, -1.0, 0.0))
        assert rec["hit"] == 0

    def test_outside_corner_misses(self):
        """Test a point inside the circumscribed circle but outside the square."""
        rec = _trace_square((0.9, 5.0, 1.05), (0.0, -1.0, 0.0))
        assert rec["hit"] == 0

    def test_parallel_ray_misses(self):
        rec = _trace_square((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert rec["hit"] == 0

    def test_square_behind_ray(self):
        rec = _trace_square((0.0, 5.0, 0.0), (0.0, 1.0, 0.0))
        assert rec["hit"] == 0

    def test_vertical_square(self):
        """Test a square facing +z, offset from the origin."""
        rec = _trace_square(
            (2.0, 1.0, 10.0), (0.0, 0.0, -1.0), center=(2.0, 1.0, -3.0), normal=(0, 0, 1)
        )
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(13.0, abs=1e-4)
        assert rec["normal"] == pytest.approx([0.0, 0.0, 1.0], abs=1e-6)

    def test_make_square(self):
        """Test make_square builds a square hit_square can trace."""
        from src.tracer.geometry.square import hit_square, make_square, square_basis, vec3

        u_axis, v_axis = square_basis((0.0, 0.0, 1.0))
        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(u: vec3, v: vec3):
            square = make_square(vec3(0.0, 0.0, -2.0), vec3(0.0, 0.0, 1.0), u, v, 1.0)
            record = hit_square(vec3(0.2, -0.2, 0.0), vec3(0.0, 0.0, -1.0), square, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t

        test_kernel(vec3(*u_axis.tolist()), vec3(*v_axis.tolist()))
        assert hit[None] == 1
        assert t_val[None] == pytest.approx(2.0, abs=1e-5)
