"""Axis-aligned cube (box) primitive with slab-test intersection.

A cube is given by its minimum and maximum corners; every component of the
minimum corner must be strictly smaller than the matching maximum component.

Ray-box intersection uses the slab method: for each axis the ray is clipped
against the pair of parallel planes bounding the box, and the intersection
interval [t_near, t_far] is the overlap of the three per-axis intervals. The
face normal is the one belonging to the plane that last tightened t_near
(entry) or t_far (exit).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.cube import Cube, hit_cube
    >>> cube = Cube(box_min=ti.math.vec3(-1, -1, -1), box_max=ti.math.vec3(1, 1, 1))
    >>> # Use hit_cube within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord, make_miss, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Direction components smaller than this are treated as parallel to a slab
PARALLEL_EPSILON = 1e-8

# Initial bounds of the slab interval
_INFINITY = 1e30


@ti.dataclass
class Cube:
    """An axis-aligned box.

    Attributes:
        box_min: Minimum corner (vec3).
        box_max: Maximum corner (vec3), strictly greater on every axis.
    """

    box_min: vec3
    box_max: vec3


@ti.func
def hit_cube(
    ray_origin: vec3,
    ray_direction: vec3,
    cube: Cube,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-cube intersection with the slab method.

    Axes where the ray direction is (nearly) zero are not divided by: the ray
    misses if its origin lies outside that slab, otherwise the axis places no
    constraint on t. A ray starting inside the box reports its exit point.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        cube: The box to test intersection against.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A HitRecord; check the hit field to determine if intersection occurred.
    """
    t_near = -_INFINITY
    t_far = _INFINITY
    near_normal = vec3(0.0, 0.0, 0.0)
    far_normal = vec3(0.0, 0.0, 0.0)
    missed = 0
    constrained = 0

    for axis in ti.static(range(3)):
        unit_axis = vec3(float(axis == 0), float(axis == 1), float(axis == 2))
        o = ray_origin[axis]
        d = ray_direction[axis]
        lo = cube.box_min[axis]
        hi = cube.box_max[axis]

        if ti.abs(d) < PARALLEL_EPSILON:
            if o < lo or o > hi:
                missed = 1
        else:
            constrained = 1
            inv_d = 1.0 / d
            t0 = (lo - o) * inv_d
            t1 = (hi - o) * inv_d
            sign = ti.select(d > 0.0, 1.0, -1.0)
            if t0 > t1:
                temp = t0
                t0 = t1
                t1 = temp
            # Entering through the face the ray points into
            if t0 > t_near:
                t_near = t0
                near_normal = -sign * unit_axis
            if t1 < t_far:
                t_far = t1
                far_normal = sign * unit_axis

    result = make_miss()

    if missed == 0 and constrained == 1 and t_near <= t_far:
        t = 0.0
        outward_normal = vec3(0.0, 0.0, 0.0)
        valid = 0
        if t_near > t_min and t_near < t_max:
            t = t_near
            outward_normal = near_normal
            valid = 1
        elif t_far > t_min and t_far < t_max:
            t = t_far
            outward_normal = far_normal
            valid = 1

        if valid == 1:
            front_face, normal = set_face_normal(ray_direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=t,
                point=ray_origin + t * ray_direction,
                normal=normal,
                front_face=front_face,
            )

    return result


@ti.func
def make_cube(box_min: vec3, box_max: vec3) -> Cube:
    """Create a cube from its corners inside a Taichi kernel."""
    return Cube(box_min=box_min, box_max=box_max)
