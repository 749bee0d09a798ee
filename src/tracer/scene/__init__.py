"""Scene module for scene management and hit records.

Components:
    intersection: Primitive storage fields and the closest-hit scene query
    manager: Scene manager coordinating primitives and materials
    presets: Built-in demo scenes with camera placements

Scene data is organized for Taichi kernels:
    - Structure-of-Arrays layout per primitive type
    - A unified material ID space mapped to per-type material registries

These modules declare Taichi fields, so import this package only after
ti.init().
"""

from .intersection import (
    MAX_CUBES,
    MAX_CYLINDERS,
    MAX_DISKS,
    MAX_SPHERES,
    MAX_SQUARES,
    SceneHitRecord,
    add_cube,
    add_cylinder,
    add_disk,
    add_sphere,
    add_square,
    clear_scene,
    get_cube_count,
    get_cylinder_count,
    get_disk_count,
    get_sphere_count,
    get_square_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    CubeInfo,
    CylinderInfo,
    DiskInfo,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    SquareInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import PRESET_NAMES, create_preset

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "add_cube",
    "add_cylinder",
    "add_square",
    "add_disk",
    "clear_scene",
    "get_sphere_count",
    "get_cube_count",
    "get_cylinder_count",
    "get_square_count",
    "get_disk_count",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_CUBES",
    "MAX_CYLINDERS",
    "MAX_SQUARES",
    "MAX_DISKS",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "CubeInfo",
    "CylinderInfo",
    "SquareInfo",
    "DiskInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "PRESET_NAMES",
    "create_preset",
]
