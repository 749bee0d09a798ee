"""Unified scene manager for coordinating primitives and materials.

This module provides a high-level scene management API that coordinates
primitive storage (spheres, cubes, cylinders, squares, disks) with material
assignment. It tracks which material type (Lambertian, Metal) each material
ID corresponds to, enabling material dispatch in the integrator.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- Host-side records of every primitive, validated on insertion
- Scene serialization to and from plain dictionaries (JSON)

Adding objects writes straight through to the Taichi fields. Because the
fields are module-level, building a second SceneManager replaces the first
one's device data; upload() rewrites the fields from a manager's own records
and is called by the renderer before every render.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_horizontal_square((0, 0, 0), 1000.0, ground)
    >>> chrome = scene.add_metal_material(albedo=(0.8, 0.8, 0.8), fuzz=0.1)
    >>> scene.add_sphere((0, 1, 0), 1.0, chrome)
"""

import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from src.tracer.geometry.square import square_basis
from src.tracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    validate_albedo,
)
from src.tracer.materials.metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from src.tracer.scene.intersection import (
    MAX_CUBES,
    MAX_CYLINDERS,
    MAX_DISKS,
    MAX_SPHERES,
    MAX_SQUARES,
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
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

Vector3 = tuple[float, float, float]


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1


# Maximum number of materials across all types
MAX_MATERIALS = 512  # 256 per type * 2 types

# Taichi fields for device-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., lambertian_albedos[type_index]).

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


# =============================================================================
# Validation helpers
# =============================================================================


def _to_vector(value, name: str) -> Vector3:
    """Convert a 3-sequence to a tuple of floats."""
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}")
    x, y, z = (float(c) for c in value)
    for c in (x, y, z):
        if not math.isfinite(c):
            raise ValueError(f"{name} must be finite, got {tuple(value)}")
    return (x, y, z)


def _to_unit_vector(value, name: str) -> Vector3:
    """Convert a 3-sequence to a unit-length tuple of floats."""
    x, y, z = _to_vector(value, name)
    norm = math.sqrt(x * x + y * y + z * z)
    if norm == 0.0:
        raise ValueError(f"{name} must be non-zero")
    return (x / norm, y / norm, z / norm)


def _require_positive(value: float, name: str) -> float:
    value = float(value)
    if not value > 0.0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


# =============================================================================
# Host-side records
# =============================================================================


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal).
        type_index: The index within the type-specific material array.
        params: The material parameters as stored (fuzz already clamped).
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """A sphere in the scene."""

    center: Vector3
    radius: float
    material_id: int


@dataclass
class CubeInfo:
    """An axis-aligned cube in the scene."""

    box_min: Vector3
    box_max: Vector3
    material_id: int


@dataclass
class CylinderInfo:
    """A capped cylinder in the scene. The axis is stored normalized."""

    base_center: Vector3
    axis: Vector3
    radius: float
    height: float
    material_id: int


@dataclass
class SquareInfo:
    """A square in the scene. The normal is stored normalized."""

    center: Vector3
    normal: Vector3
    size: float
    material_id: int


@dataclass
class DiskInfo:
    """A disk in the scene. The normal is stored normalized."""

    center: Vector3
    normal: Vector3
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Each list holds plain dictionaries as written by SceneManager.to_dict().
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    cubes: list[dict[str, Any]] = field(default_factory=list)
    cylinders: list[dict[str, Any]] = field(default_factory=list)
    squares: list[dict[str, Any]] = field(default_factory=list)
    disks: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Unified scene manager coordinating primitives and materials.

    Attributes:
        materials: MaterialInfo for all registered materials, indexed by ID.
        spheres: SphereInfo for all spheres in the scene.
        cubes: CubeInfo for all cubes in the scene.
        cylinders: CylinderInfo for all cylinders in the scene.
        squares: SquareInfo for all squares in the scene.
        disks: DiskInfo for all disks in the scene.

    Example:
        >>> scene = SceneManager()
        >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> teal = scene.add_metal_material(albedo=(0.2, 0.7, 0.7), fuzz=0.1)
        >>> scene.add_sphere((0, 1, 1), 1.0, teal)
        >>> scene.add_cube((-4.5, 0, 0), (-2.5, 2, 2), teal)
        >>> scene.add_cylinder((3.5, 0, 1), (0, 1, 0), 0.8, 2.0, red)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.cubes: list[CubeInfo] = []
        self.cylinders: list[CylinderInfo] = []
        self.squares: list[SquareInfo] = []
        self.disks: list[DiskInfo] = []
        self._clear_all()

    @staticmethod
    def _clear_fields() -> None:
        """Clear primitive storage, material registries and material tracking."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        _clear_material_tracking()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        self._clear_fields()
        self.materials.clear()
        self.spheres.clear()
        self.cubes.clear()
        self.cylinders.clear()
        self.squares.clear()
        self.disks.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials).

        Resets all Taichi fields and internal tracking structures.
        """
        self._clear_all()

    # =========================================================================
    # Device upload
    # =========================================================================

    def _write_material(self, info: MaterialInfo) -> None:
        if info.material_type == MaterialType.LAMBERTIAN:
            type_index = add_lambertian_material(info.params["albedo"])
        else:
            type_index = add_metal_material(info.params["albedo"], info.params["fuzz"])

        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(info.material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1
        info.material_id = material_id
        info.type_index = type_index

    @staticmethod
    def _write_sphere(info: SphereInfo) -> int:
        return add_sphere(vec3(*info.center), info.radius, info.material_id)

    @staticmethod
    def _write_cube(info: CubeInfo) -> int:
        return add_cube(vec3(*info.box_min), vec3(*info.box_max), info.material_id)

    @staticmethod
    def _write_cylinder(info: CylinderInfo) -> int:
        return add_cylinder(
            vec3(*info.base_center),
            vec3(*info.axis),
            info.radius,
            info.height,
            info.material_id,
        )

    @staticmethod
    def _write_square(info: SquareInfo) -> int:
        u_axis, v_axis = square_basis(info.normal)
        return add_square(
            vec3(*info.center),
            vec3(*info.normal),
            vec3(*u_axis.tolist()),
            vec3(*v_axis.tolist()),
            info.size,
            info.material_id,
        )

    @staticmethod
    def _write_disk(info: DiskInfo) -> int:
        return add_disk(vec3(*info.center), vec3(*info.normal), info.radius, info.material_id)

    def upload(self) -> None:
        """Rewrite every Taichi field from this manager's records.

        Material IDs are reassigned in registration order, which reproduces
        the IDs handed out when the materials were added.
        """
        self._clear_fields()
        for material in self.materials:
            self._write_material(material)
        for sphere in self.spheres:
            self._write_sphere(sphere)
        for cube in self.cubes:
            self._write_cube(cube)
        for cylinder in self.cylinders:
            self._write_cylinder(cylinder)
        for square in self.squares:
            self._write_square(square)
        for disk in self.disks:
            self._write_disk(disk)
        logger.debug(
            "Uploaded scene: %d materials, %d primitives",
            len(self.materials),
            self.get_primitive_count(),
        )

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(self, material_type: MaterialType, params: dict[str, Any]) -> int:
        info = MaterialInfo(
            material_id=-1, material_type=material_type, type_index=-1, params=params
        )
        self._write_material(info)
        self.materials.append(info)
        return info.material_id

    def add_lambertian_material(self, albedo: Vector3) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        albedo = _to_vector(albedo, "albedo")
        validate_albedo(albedo)
        return self._register_material(MaterialType.LAMBERTIAN, {"albedo": albedo})

    def add_metal_material(self, albedo: Vector3, fuzz: float = 0.0) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The perturbation radius. Values outside [0, 1] are clamped
                with a warning.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1] or fuzz
                is not finite.
        """
        albedo = _to_vector(albedo, "albedo")
        validate_albedo(albedo)
        fuzz = clamp_fuzz(fuzz)
        return self._register_material(MaterialType.METAL, {"albedo": albedo, "fuzz": fuzz})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For device-side lookup, use the get_material_type() Taichi function.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    def _check_material_id(self, material_id: int) -> int:
        if isinstance(material_id, bool) or not isinstance(material_id, int):
            raise ValueError(f"material_id must be an integer, got {material_id!r}")
        if not 0 <= material_id < len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")
        return int(material_id)

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(self, center: Vector3, radius: float, material_id: int) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If the radius is not positive or material_id is invalid.
        """
        info = SphereInfo(
            center=_to_vector(center, "center"),
            radius=_require_positive(radius, "Sphere radius"),
            material_id=self._check_material_id(material_id),
        )
        index = self._write_sphere(info)
        self.spheres.append(info)
        return index

    def add_cube(self, box_min: Vector3, box_max: Vector3, material_id: int) -> int:
        """Add an axis-aligned cube given its minimum and maximum corners.

        Raises:
            RuntimeError: If the maximum number of cubes is exceeded.
            ValueError: If any min component is not strictly below the max
                component, or material_id is invalid.
        """
        box_min = _to_vector(box_min, "box_min")
        box_max = _to_vector(box_max, "box_max")
        for axis in range(3):
            if box_min[axis] >= box_max[axis]:
                raise ValueError(
                    f"Cube min corner {box_min} must be strictly below max corner "
                    f"{box_max} on every axis"
                )
        info = CubeInfo(
            box_min=box_min,
            box_max=box_max,
            material_id=self._check_material_id(material_id),
        )
        index = self._write_cube(info)
        self.cubes.append(info)
        return index

    def add_cube_centered(self, center: Vector3, size: float, material_id: int) -> int:
        """Add a cube of edge length size centered on center."""
        cx, cy, cz = _to_vector(center, "center")
        half = 0.5 * _require_positive(size, "Cube size")
        return self.add_cube(
            (cx - half, cy - half, cz - half),
            (cx + half, cy + half, cz + half),
            material_id,
        )

    def add_cube_from_size(
        self,
        corner: Vector3,
        width: float,
        height: float,
        depth: float,
        material_id: int,
    ) -> int:
        """Add a box spanning corner to corner + (width, height, depth)."""
        x, y, z = _to_vector(corner, "corner")
        return self.add_cube(
            (x, y, z),
            (
                x + _require_positive(width, "Cube width"),
                y + _require_positive(height, "Cube height"),
                z + _require_positive(depth, "Cube depth"),
            ),
            material_id,
        )

    def add_cylinder(
        self,
        base_center: Vector3,
        axis: Vector3,
        radius: float,
        height: float,
        material_id: int,
    ) -> int:
        """Add a capped cylinder to the scene.

        Args:
            base_center: Center of the base cap as (x, y, z).
            axis: Direction from the base toward the top (normalized here).
            radius: Cylinder radius.
            height: Distance between the caps along the axis.
            material_id: The unified material ID to assign.

        Returns:
            The index of the added cylinder.

        Raises:
            RuntimeError: If the maximum number of cylinders is exceeded.
            ValueError: If the axis is zero, radius or height is not
                positive, or material_id is invalid.
        """
        info = CylinderInfo(
            base_center=_to_vector(base_center, "base_center"),
            axis=_to_unit_vector(axis, "Cylinder axis"),
            radius=_require_positive(radius, "Cylinder radius"),
            height=_require_positive(height, "Cylinder height"),
            material_id=self._check_material_id(material_id),
        )
        index = self._write_cylinder(info)
        self.cylinders.append(info)
        return index

    def add_square(
        self,
        center: Vector3,
        normal: Vector3,
        size: float,
        material_id: int,
    ) -> int:
        """Add a square with the given center, normal and edge length.

        Raises:
            RuntimeError: If the maximum number of squares is exceeded.
            ValueError: If the normal is zero, size is not positive, or
                material_id is invalid.
        """
        info = SquareInfo(
            center=_to_vector(center, "center"),
            normal=_to_unit_vector(normal, "Square normal"),
            size=_require_positive(size, "Square size"),
            material_id=self._check_material_id(material_id),
        )
        index = self._write_square(info)
        self.squares.append(info)
        return index

    def add_horizontal_square(self, center: Vector3, size: float, material_id: int) -> int:
        """Add a square lying in a horizontal plane (normal +y)."""
        return self.add_square(center, (0.0, 1.0, 0.0), size, material_id)

    def add_vertical_square(self, center: Vector3, size: float, material_id: int) -> int:
        """Add a square standing in a vertical plane (normal +z)."""
        return self.add_square(center, (0.0, 0.0, 1.0), size, material_id)

    def add_disk(
        self,
        center: Vector3,
        normal: Vector3,
        radius: float,
        material_id: int,
    ) -> int:
        """Add a flat disk to the scene.

        Raises:
            RuntimeError: If the maximum number of disks is exceeded.
            ValueError: If the normal is zero, radius is not positive, or
                material_id is invalid.
        """
        info = DiskInfo(
            center=_to_vector(center, "center"),
            normal=_to_unit_vector(normal, "Disk normal"),
            radius=_require_positive(radius, "Disk radius"),
            material_id=self._check_material_id(material_id),
        )
        index = self._write_disk(info)
        self.disks.append(info)
        return index

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the device fields."""
        return get_sphere_count()

    def get_cube_count(self) -> int:
        """Get the number of cubes in the device fields."""
        return get_cube_count()

    def get_cylinder_count(self) -> int:
        """Get the number of cylinders in the device fields."""
        return get_cylinder_count()

    def get_square_count(self) -> int:
        """Get the number of squares in the device fields."""
        return get_square_count()

    def get_disk_count(self) -> int:
        """Get the number of disks in the device fields."""
        return get_disk_count()

    def get_primitive_count(self) -> int:
        """Get the total number of primitives recorded in this scene."""
        return (
            len(self.spheres)
            + len(self.cubes)
            + len(self.cylinders)
            + len(self.squares)
            + len(self.disks)
        )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        for cube in self.cubes:
            config.cubes.append(
                {
                    "min": list(cube.box_min),
                    "max": list(cube.box_max),
                    "material_id": cube.material_id,
                }
            )

        for cylinder in self.cylinders:
            config.cylinders.append(
                {
                    "base_center": list(cylinder.base_center),
                    "axis": list(cylinder.axis),
                    "radius": cylinder.radius,
                    "height": cylinder.height,
                    "material_id": cylinder.material_id,
                }
            )

        for square in self.squares:
            config.squares.append(
                {
                    "center": list(square.center),
                    "normal": list(square.normal),
                    "size": square.size,
                    "material_id": square.material_id,
                }
            )

        for disk in self.disks:
            config.disks.append(
                {
                    "center": list(disk.center),
                    "normal": list(disk.normal),
                    "radius": disk.radius,
                    "material_id": disk.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Materials first, primitives reference them by ID
        for mat_config in config.materials:
            mat_type = str(mat_config.get("type", "")).lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(mat_config.get("albedo", [0.5, 0.5, 0.5]))
            elif mat_type == "metal":
                self.add_metal_material(
                    mat_config.get("albedo", [0.8, 0.8, 0.8]),
                    mat_config.get("fuzz", 0.0),
                )
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        try:
            for entry in config.spheres:
                self.add_sphere(entry["center"], entry["radius"], entry["material_id"])
            for entry in config.cubes:
                self.add_cube(entry["min"], entry["max"], entry["material_id"])
            for entry in config.cylinders:
                self.add_cylinder(
                    entry["base_center"],
                    entry.get("axis", [0.0, 1.0, 0.0]),
                    entry["radius"],
                    entry["height"],
                    entry["material_id"],
                )
            for entry in config.squares:
                self.add_square(
                    entry["center"],
                    entry.get("normal", [0.0, 1.0, 0.0]),
                    entry["size"],
                    entry["material_id"],
                )
            for entry in config.disks:
                self.add_disk(
                    entry["center"],
                    entry.get("normal", [0.0, 1.0, 0.0]),
                    entry["radius"],
                    entry["material_id"],
                )
        except KeyError as exc:
            raise ValueError(f"Scene entry is missing field {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "cubes": config.cubes,
            "cylinders": config.cylinders,
            "squares": config.squares,
            "disks": config.disks,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with any of the 'materials', 'spheres', 'cubes',
                'cylinders', 'squares' and 'disks' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            cubes=data.get("cubes", []),
            cylinders=data.get("cylinders", []),
            squares=data.get("squares", []),
            disks=data.get("disks", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_cubes() -> int:
        """Get the maximum number of cubes supported."""
        return MAX_CUBES

    @staticmethod
    def get_max_cylinders() -> int:
        """Get the maximum number of cylinders supported."""
        return MAX_CYLINDERS

    @staticmethod
    def get_max_squares() -> int:
        """Get the maximum number of squares supported."""
        return MAX_SQUARES

    @staticmethod
    def get_max_disks() -> int:
        """Get the maximum number of disks supported."""
        return MAX_DISKS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
