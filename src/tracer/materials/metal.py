"""Metal (specular reflective) material implementation.

A metal surface mirrors the incoming direction about the normal,
    R = I - 2(I . N)N
and perturbs the result by fuzz * random_in_unit_sphere() to model a
brushed or rough finish. Fuzz 0 is a perfect mirror. A perturbed direction
that ends up at or below the surface is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, stream
    >>> # )
"""

import logging
import math

import taichi as ti
import taichi.math as tm

from src.tracer.core.ray import near_zero, reflect
from src.tracer.core.rng import random_in_unit_sphere

from .lambertian import validate_albedo

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1], warning when it had to be changed.

    Raises:
        ValueError: If fuzz is NaN or infinite.
    """
    fuzz = float(fuzz)
    if not math.isfinite(fuzz):
        raise ValueError(f"Metal fuzz must be finite, got {fuzz}")
    clamped = min(max(fuzz, 0.0), 1.0)
    if clamped != fuzz:
        logger.warning("Metal fuzz %s is outside [0, 1], clamped to %s", fuzz, clamped)
    return clamped


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered ray direction for a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The perturbation radius in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The unit surface normal, facing the incoming ray.
        stream: The random stream to draw from.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected direction (normalized), or zero
          when absorbed.
        - attenuation: The color attenuation (equals albedo for metals).
        - did_scatter: 1 if the ray left above the surface, 0 if absorbed.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)
    perturbed = reflected + fuzz * random_in_unit_sphere(stream)

    did_scatter = 0
    scattered_direction = vec3(0.0, 0.0, 0.0)

    if not near_zero(perturbed):
        if tm.dot(perturbed, normal) > 0.0:
            did_scatter = 1
            scattered_direction = tm.normalize(perturbed)

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
        fuzz: The perturbation radius. Default is 0 (perfect mirror). Values
            outside [0, 1] are clamped with a warning.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)
    fuzz = clamp_fuzz(fuzz)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter off the metal material stored at material_idx.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, incident_direction, normal, stream)
