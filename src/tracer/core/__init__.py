"""Core rendering module.

Components:
    ray: Ray data structure and vector helpers
    rng: Per-pixel random streams and random direction samplers
    config: Immutable render configuration
    integrator: Color integration loop and the render entry point

The integrator follows rays from the camera through the scene, multiplying
material attenuations at each bounce until the ray escapes to the sky
gradient, is absorbed, or runs out of depth budget.
"""

from .config import RenderConfig
from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    vec3,
)

# Note: rng and integrator declare Taichi fields and are NOT imported here.
# Import them directly once Taichi is initialized:
#   from src.tracer.core.integrator import render

__all__ = [
    "RenderConfig",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "near_zero",
]
