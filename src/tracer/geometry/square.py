"""Square primitive with ray-square intersection.

A square is a flat, finite plane patch given by its center, a unit normal and
an edge length. Its in-plane axes are derived from the normal once on the
host (square_basis) and stored alongside it, so the device test only has to
project the hit point onto them.

Ray-square intersection uses the parametric plane test:
1. Find where the ray meets the plane through the center
2. Check that both in-plane coordinates lie within +/- size/2

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.square import Square, hit_square, square_basis
    >>> u_axis, v_axis = square_basis((0.0, 1.0, 0.0))
    >>> ground = Square(
    ...     center=ti.math.vec3(0, 0, 0),
    ...     normal=ti.math.vec3(0, 1, 0),
    ...     u_axis=ti.math.vec3(*u_axis),
    ...     v_axis=ti.math.vec3(*v_axis),
    ...     size=1000.0,
    ... )
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from .sphere import HitRecord, make_miss, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays with |dot(direction, normal)| below this are treated as parallel
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Square:
    """A square patch of a plane.

    Attributes:
        center: Center of the square (vec3).
        normal: Unit outward normal (vec3).
        u_axis: Unit in-plane axis orthogonal to the normal (vec3).
        v_axis: Unit in-plane axis, cross(normal, u_axis) (vec3).
        size: Edge length (positive float).
    """

    center: vec3
    normal: vec3
    u_axis: vec3
    v_axis: vec3
    size: ti.f32


def square_basis(normal) -> tuple[np.ndarray, np.ndarray]:
    """Derive an orthonormal in-plane basis from a normal.

    A helper vector not parallel to the normal is crossed with it: the y axis
    when the normal is mostly along x, otherwise the x axis.

    Args:
        normal: Normal vector of the square (any non-zero length).

    Returns:
        Tuple (u_axis, v_axis) of unit float32 arrays, both orthogonal to the
        normal and to each other.

    Raises:
        ValueError: If the normal has zero length.
    """
    n = np.asarray(normal, dtype=np.float64)
    n_len = np.linalg.norm(n)
    if n_len == 0.0:
        raise ValueError("Square normal must be non-zero")
    n = n / n_len

    if abs(n[0]) > 0.9:
        helper = np.array([0.0, 1.0, 0.0])
    else:
        helper = np.array([1.0, 0.0, 0.0])

    u_axis = np.cross(n, helper)
    u_axis /= np.linalg.norm(u_axis)
    v_axis = np.cross(n, u_axis)
    return u_axis.astype(np.float32), v_axis.astype(np.float32)


@ti.func
def hit_square(
    ray_origin: vec3,
    ray_direction: vec3,
    square: Square,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-square intersection.

    The plane hit is found by solving
        dot(ray_origin + t * ray_direction - center, normal) = 0
    and the hit point is accepted when its offset from the center projects to
    at most size/2 on both in-plane axes (edges included).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        square: The square to test intersection against.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A HitRecord; check the hit field to determine if intersection occurred.
    """
    result = make_miss()

    denom = tm.dot(ray_direction, square.normal)

    # Parallel rays never hit, including rays lying in the plane
    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(square.center - ray_origin, square.normal) / denom

        if t > t_min and t < t_max:
            hit_point = ray_origin + t * ray_direction
            offset = hit_point - square.center
            half = 0.5 * square.size
            u = tm.dot(offset, square.u_axis)
            v = tm.dot(offset, square.v_axis)

            if ti.abs(u) <= half and ti.abs(v) <= half:
                front_face, normal = set_face_normal(ray_direction, square.normal)
                result = HitRecord(
                    hit=1,
                    t=t,
                    point=hit_point,
                    normal=normal,
                    front_face=front_face,
                )

    return result


@ti.func
def make_square(
    center: vec3, normal: vec3, u_axis: vec3, v_axis: vec3, size: ti.f32
) -> Square:
    """Create a square inside a Taichi kernel from a precomputed basis."""
    return Square(
        center=center, normal=normal, u_axis=u_axis, v_axis=v_axis, size=size
    )
