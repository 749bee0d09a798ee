"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, plus the HitRecord shared by all primitives
    cube: Axis-aligned box (slab test)
    cylinder: Capped cylinder with an arbitrary axis
    square: Finite plane patch with a center, normal and edge length
    disk: Flat circle, also used for cylinder caps

All intersection routines are Taichi functions (@ti.func) with the same
signature:
    record = hit_<shape>(ray_origin, ray_direction, shape, t_min, t_max)
and report hits strictly inside (t_min, t_max) with a unit normal facing
against the ray.
"""

from .cube import Cube, hit_cube, make_cube
from .cylinder import Cylinder, hit_cylinder, make_cylinder
from .disk import Disk, hit_disk, make_disk
from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, set_face_normal
from .square import Square, hit_square, make_square, square_basis

__all__ = [
    "HitRecord",
    "set_face_normal",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Cube",
    "hit_cube",
    "make_cube",
    "Cylinder",
    "hit_cylinder",
    "make_cylinder",
    "Square",
    "hit_square",
    "make_square",
    "square_basis",
    "Disk",
    "hit_disk",
    "make_disk",
]
