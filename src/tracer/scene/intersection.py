"""Scene-level primitive intersection testing.

This module provides scene-level ray intersection testing that handles
every primitive type (spheres, cubes, cylinders, squares, disks) and returns
the closest hit with material information.

The scene stores primitives in Taichi fields, one Structure-of-Arrays group
per primitive type. Each primitive has an associated material ID for shading.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.intersection import (
    ...     SceneHitRecord, add_sphere, add_cube, intersect_scene, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> add_cube(vec3(-1, -1, -3), vec3(1, 1, -2), material_id=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.tracer.geometry.cube import Cube, hit_cube
from src.tracer.geometry.cylinder import Cylinder, hit_cylinder
from src.tracer.geometry.disk import Disk, hit_disk
from src.tracer.geometry.sphere import HitRecord, Sphere, hit_sphere
from src.tracer.geometry.square import Square, hit_square

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, facing against the ray.
        front_face: Whether the ray hit the outside (1) or inside (0).
        material_id: The material ID of the hit primitive. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of primitives supported in the scene, per type
MAX_SPHERES = 1024
MAX_CUBES = 256
MAX_CYLINDERS = 256
MAX_SQUARES = 256
MAX_DISKS = 256

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Cube storage
cube_mins = ti.Vector.field(3, dtype=ti.f32, shape=MAX_CUBES)
cube_maxs = ti.Vector.field(3, dtype=ti.f32, shape=MAX_CUBES)
cube_material_ids = ti.field(dtype=ti.i32, shape=MAX_CUBES)
num_cubes = ti.field(dtype=ti.i32, shape=())

# Cylinder storage (axes are unit length)
cylinder_bases = ti.Vector.field(3, dtype=ti.f32, shape=MAX_CYLINDERS)
cylinder_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_CYLINDERS)
cylinder_radii = ti.field(dtype=ti.f32, shape=MAX_CYLINDERS)
cylinder_heights = ti.field(dtype=ti.f32, shape=MAX_CYLINDERS)
cylinder_material_ids = ti.field(dtype=ti.i32, shape=MAX_CYLINDERS)
num_cylinders = ti.field(dtype=ti.i32, shape=())

# Square storage (normal, u_axis and v_axis are an orthonormal frame)
square_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SQUARES)
square_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SQUARES)
square_u_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SQUARES)
square_v_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SQUARES)
square_sizes = ti.field(dtype=ti.f32, shape=MAX_SQUARES)
square_material_ids = ti.field(dtype=ti.i32, shape=MAX_SQUARES)
num_squares = ti.field(dtype=ti.i32, shape=())

# Disk storage (normals are unit length)
disk_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DISKS)
disk_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DISKS)
disk_radii = ti.field(dtype=ti.f32, shape=MAX_DISKS)
disk_material_ids = ti.field(dtype=ti.i32, shape=MAX_DISKS)
num_disks = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    num_cubes[None] = 0
    num_cylinders[None] = 0
    num_squares[None] = 0
    num_disks[None] = 0


def _next_index(counter, capacity: int, kind: str) -> int:
    idx = counter[None]
    if idx >= capacity:
        raise RuntimeError(f"Maximum number of {kind} ({capacity}) exceeded")
    return idx


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (should be positive).
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = _next_index(num_spheres, MAX_SPHERES, "spheres")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def add_cube(box_min: vec3, box_max: vec3, material_id: int = 0) -> int:
    """Add an axis-aligned cube to the scene.

    Args:
        box_min: The minimum corner.
        box_max: The maximum corner (strictly greater on every axis).
        material_id: The material ID to associate with this cube.

    Returns:
        The index of the added cube.

    Raises:
        RuntimeError: If the maximum number of cubes is exceeded.
    """
    idx = _next_index(num_cubes, MAX_CUBES, "cubes")
    cube_mins[idx] = box_min
    cube_maxs[idx] = box_max
    cube_material_ids[idx] = material_id
    num_cubes[None] = idx + 1
    return idx


def add_cylinder(
    base_center: vec3,
    axis: vec3,
    radius: float,
    height: float,
    material_id: int = 0,
) -> int:
    """Add a capped cylinder to the scene.

    Args:
        base_center: Center of the base cap.
        axis: Unit axis direction from base to top.
        radius: Cylinder radius.
        height: Distance between the caps.
        material_id: The material ID to associate with this cylinder.

    Returns:
        The index of the added cylinder.

    Raises:
        RuntimeError: If the maximum number of cylinders is exceeded.
    """
    idx = _next_index(num_cylinders, MAX_CYLINDERS, "cylinders")
    cylinder_bases[idx] = base_center
    cylinder_axes[idx] = axis
    cylinder_radii[idx] = radius
    cylinder_heights[idx] = height
    cylinder_material_ids[idx] = material_id
    num_cylinders[None] = idx + 1
    return idx


def add_square(
    center: vec3,
    normal: vec3,
    u_axis: vec3,
    v_axis: vec3,
    size: float,
    material_id: int = 0,
) -> int:
    """Add a square to the scene.

    Args:
        center: Center of the square.
        normal: Unit normal.
        u_axis: Unit in-plane axis (see square_basis).
        v_axis: Second unit in-plane axis.
        size: Edge length.
        material_id: The material ID to associate with this square.

    Returns:
        The index of the added square.

    Raises:
        RuntimeError: If the maximum number of squares is exceeded.
    """
    idx = _next_index(num_squares, MAX_SQUARES, "squares")
    square_centers[idx] = center
    square_normals[idx] = normal
    square_u_axes[idx] = u_axis
    square_v_axes[idx] = v_axis
    square_sizes[idx] = size
    square_material_ids[idx] = material_id
    num_squares[None] = idx + 1
    return idx


def add_disk(center: vec3, normal: vec3, radius: float, material_id: int = 0) -> int:
    """Add a disk to the scene.

    Raises:
        RuntimeError: If the maximum number of disks is exceeded.
    """
    idx = _next_index(num_disks, MAX_DISKS, "disks")
    disk_centers[idx] = center
    disk_normals[idx] = normal
    disk_radii[idx] = radius
    disk_material_ids[idx] = material_id
    num_disks[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_cube_count() -> int:
    """Get the number of cubes in the scene."""
    return int(num_cubes[None])


def get_cylinder_count() -> int:
    """Get the number of cylinders in the scene."""
    return int(num_cylinders[None])


def get_square_count() -> int:
    """Get the number of squares in the scene."""
    return int(num_squares[None])


def get_disk_count() -> int:
    """Get the number of disks in the scene."""
    return int(num_disks[None])


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Convert a HitRecord to a SceneHitRecord with material ID."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Test ray against all primitives in the scene.

    Iterates through every primitive of every type, narrowing the upper
    bound to the closest hit found so far, so the result is the hit with the
    smallest t in (t_min, t_max). On equal t the primitive tested first wins.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound (exclusive) for a valid hit.
        t_max: Upper bound (exclusive) for a valid hit.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])

    for i in range(num_cubes[None]):
        cube = Cube(box_min=cube_mins[i], box_max=cube_maxs[i])
        rec = hit_cube(ray_origin, ray_direction, cube, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, cube_material_ids[i])

    for i in range(num_cylinders[None]):
        cylinder = Cylinder(
            base_center=cylinder_bases[i],
            axis=cylinder_axes[i],
            radius=cylinder_radii[i],
            height=cylinder_heights[i],
        )
        rec = hit_cylinder(ray_origin, ray_direction, cylinder, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, cylinder_material_ids[i])

    for i in range(num_squares[None]):
        square = Square(
            center=square_centers[i],
            normal=square_normals[i],
            u_axis=square_u_axes[i],
            v_axis=square_v_axes[i],
            size=square_sizes[i],
        )
        rec = hit_square(ray_origin, ray_direction, square, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, square_material_ids[i])

    for i in range(num_disks[None]):
        disk = Disk(center=disk_centers[i], normal=disk_normals[i], radius=disk_radii[i])
        rec = hit_disk(ray_origin, ray_direction, disk, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, disk_material_ids[i])

    return result
