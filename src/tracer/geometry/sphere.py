"""Sphere primitive with robust ray-sphere intersection.

This module also defines HitRecord, the result type shared by every
primitive, and set_face_normal, which orients a geometric normal against the
incoming ray.

The sphere test solves the half-b quadratic with the robust root formula from
Ray Tracing Gems to avoid catastrophic cancellation when b^2 is nearly equal
to 4ac.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The surface normal at the intersection point. Unit length and
            always opposing the ray direction (flipped for back-face hits).
            Only valid if hit == 1.
        front_face: Whether the ray hit the outside of the surface (1) or the
            inside (0). Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient an outward normal so that it opposes the ray.

    Args:
        ray_direction: The direction of the incoming ray.
        outward_normal: The unit geometric normal pointing out of the surface.

    Returns:
        A tuple (front_face, normal) where front_face is 1 only when the ray
        points against the outward normal. Otherwise, including grazing rays,
        front_face is 0 and the normal is negated.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 with a numerically stable formula.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids subtracting close values
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the center line; fall back to the plain formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The intersection is found by solving
        |ray_origin + t * ray_direction - center|^2 = radius^2
    which expands to a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    A negative discriminant is a miss. Otherwise the smaller root is taken if
    it lies strictly inside (t_min, t_max), else the larger one.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A HitRecord; check the hit field to determine if intersection occurred.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    result = make_miss()

    # a == 0 only for a zero-length direction, which cannot hit anything
    if discriminant >= 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius
            front_face, normal = set_face_normal(ray_direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=t,
                point=hit_point,
                normal=normal,
                front_face=front_face,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)
