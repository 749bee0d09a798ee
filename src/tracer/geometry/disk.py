"""Disk primitive with ray-disk intersection.

A disk is a flat circle given by its center, a unit normal and a radius. It
is used on its own and as the two end caps of a cylinder.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.disk import Disk, hit_disk
    >>> disk = Disk(
    ...     center=ti.math.vec3(0, 0, 0),
    ...     normal=ti.math.vec3(0, 1, 0),
    ...     radius=1.0,
    ... )
    >>> # Use hit_disk within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord, make_miss, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays with |dot(direction, normal)| below this are treated as parallel
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Disk:
    """A flat circular disk.

    Attributes:
        center: Center of the disk (vec3).
        normal: Unit outward normal of the disk plane (vec3).
        radius: Radius of the disk (positive float).
    """

    center: vec3
    normal: vec3
    radius: ti.f32


@ti.func
def hit_disk(
    ray_origin: vec3,
    ray_direction: vec3,
    disk: Disk,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-disk intersection.

    The ray is intersected with the disk plane, then the hit point is accepted
    if it lies within radius of the center (boundary included).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        disk: The disk to test intersection against.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A HitRecord; check the hit field to determine if intersection occurred.
    """
    result = make_miss()

    denom = tm.dot(ray_direction, disk.normal)
    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(disk.center - ray_origin, disk.normal) / denom
        if t > t_min and t < t_max:
            hit_point = ray_origin + t * ray_direction
            offset = hit_point - disk.center
            if tm.dot(offset, offset) <= disk.radius * disk.radius:
                front_face, normal = set_face_normal(ray_direction, disk.normal)
                result = HitRecord(
                    hit=1,
                    t=t,
                    point=hit_point,
                    normal=normal,
                    front_face=front_face,
                )

    return result


@ti.func
def make_disk(center: vec3, normal: vec3, radius: ti.f32) -> Disk:
    """Create a disk inside a Taichi kernel. The normal must be unit length."""
    return Disk(center=center, normal=normal, radius=radius)
