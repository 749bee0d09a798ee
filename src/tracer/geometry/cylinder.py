"""Capped cylinder primitive.

A cylinder is given by the center of its base, a unit axis direction, a
radius and a height. The lateral surface is intersected by solving a
quadratic in the plane perpendicular to the axis; the two end caps are disks
(see disk.py) facing -axis at the base and +axis at the top.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.cylinder import Cylinder, hit_cylinder
    >>> cylinder = Cylinder(
    ...     base_center=ti.math.vec3(0, 0, 0),
    ...     axis=ti.math.vec3(0, 1, 0),
    ...     radius=0.8,
    ...     height=2.0,
    ... )
"""

import taichi as ti
import taichi.math as tm

from .disk import Disk, hit_disk
from .sphere import HitRecord, make_miss, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays whose direction is this close to the axis skip the lateral test
AXIS_PARALLEL_EPSILON = 1e-12


@ti.dataclass
class Cylinder:
    """A finite cylinder closed by two caps.

    Attributes:
        base_center: Center of the base cap (vec3).
        axis: Unit direction from the base cap to the top cap (vec3).
        radius: Radius (positive float).
        height: Distance between the caps along the axis (positive float).
    """

    base_center: vec3
    axis: vec3
    radius: ti.f32
    height: ti.f32


@ti.func
def hit_cylinder(
    ray_origin: vec3,
    ray_direction: vec3,
    cylinder: Cylinder,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-cylinder intersection.

    With oc = ray_origin - base_center, both oc and the ray direction are split
    into components along the axis and perpendicular to it. The lateral
    surface satisfies
        |oc_perp + t * d_perp|^2 = radius^2
    and a root is kept only if its axial coordinate oc_par + t * d_par lies in
    [0, height]. The caps are then tested with the interval narrowed to the
    closest lateral hit, so the nearest candidate wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        cylinder: The cylinder to test intersection against.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A HitRecord; check the hit field to determine if intersection occurred.
    """
    axis = cylinder.axis
    oc = ray_origin - cylinder.base_center

    d_par = tm.dot(ray_direction, axis)
    oc_par = tm.dot(oc, axis)
    d_perp = ray_direction - d_par * axis
    oc_perp = oc - oc_par * axis

    a = tm.dot(d_perp, d_perp)
    h = tm.dot(d_perp, oc_perp)
    c = tm.dot(oc_perp, oc_perp) - cylinder.radius * cylinder.radius

    result = make_miss()
    closest_t = t_max

    # Lateral surface
    if a > AXIS_PARALLEL_EPSILON:
        discriminant = h * h - a * c
        if discriminant >= 0.0:
            sqrt_d = ti.sqrt(discriminant)
            # Smaller root first
            for k in ti.static(range(2)):
                t = (-h + (2 * k - 1) * sqrt_d) / a
                if t > t_min and t < closest_t:
                    y = oc_par + t * d_par
                    if y >= 0.0 and y <= cylinder.height:
                        hit_point = ray_origin + t * ray_direction
                        outward_normal = (
                            hit_point - cylinder.base_center - y * axis
                        ) / cylinder.radius
                        front_face, normal = set_face_normal(
                            ray_direction, outward_normal
                        )
                        result = HitRecord(
                            hit=1,
                            t=t,
                            point=hit_point,
                            normal=normal,
                            front_face=front_face,
                        )
                        closest_t = t

    # End caps
    base_cap = Disk(center=cylinder.base_center, normal=-axis, radius=cylinder.radius)
    base_rec = hit_disk(ray_origin, ray_direction, base_cap, t_min, closest_t)
    if base_rec.hit == 1:
        result = base_rec
        closest_t = base_rec.t

    top_cap = Disk(
        center=cylinder.base_center + cylinder.height * axis,
        normal=axis,
        radius=cylinder.radius,
    )
    top_rec = hit_disk(ray_origin, ray_direction, top_cap, t_min, closest_t)
    if top_rec.hit == 1:
        result = top_rec
        closest_t = top_rec.t

    return result


@ti.func
def make_cylinder(
    base_center: vec3, axis: vec3, radius: ti.f32, height: ti.f32
) -> Cylinder:
    """Create a cylinder inside a Taichi kernel. The axis must be unit length."""
    return Cylinder(base_center=base_center, axis=axis, radius=radius, height=height)
