"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters an incoming ray into the direction
    normal + random_unit_vector()
which distributes scattered rays with a cosine falloff around the normal. The
attenuation is the albedo, and a Lambertian surface never absorbs a ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(
    >>> #     albedo, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.tracer.core.ray import near_zero
from src.tracer.core.rng import random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that an albedo has three components inside [0, 1].

    Raises:
        ValueError: If the albedo is malformed or a component is out of range.
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


@ti.func
def scatter_lambertian(
    albedo: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Sample a scattered ray direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The unit surface normal at the hit point, facing the ray.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        scattered_direction is normalized, attenuation equals albedo and
        did_scatter is always 1.
    """
    scattered_direction = normal + random_unit_vector(stream)

    # The random vector can nearly cancel the normal
    if near_zero(scattered_direction):
        scattered_direction = normal

    did_scatter = 1
    return tm.normalize(scattered_direction), albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(
    material_idx: ti.i32,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off the Lambertian material stored at material_idx.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = get_lambertian_albedo(material_idx)
    return scatter_lambertian(albedo, normal, stream)
