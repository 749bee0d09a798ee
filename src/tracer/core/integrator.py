"""Ray tracing integrator and the render entry point.

This module implements the main rendering kernel: for every pixel it traces
jittered camera rays through the scene, bouncing them off surfaces according
to their materials, and averages the results.

A path carries a throughput, the product of the attenuations met so far:
    - depth budget exhausted: the path contributes black
    - ray escapes the scene: throughput * background gradient
    - material absorbs the ray: black
    - material scatters the ray: throughput *= attenuation, continue

The background is a vertical gradient between a horizon and a zenith color,
blended by t = 0.5 * (unit(direction).y + 1).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.core.config import RenderConfig
    >>> from src.tracer.core.integrator import render
    >>> from src.tracer.scene.presets import create_preset
    >>>
    >>> config = RenderConfig(width=300, height=200, samples_per_pixel=20)
    >>> scene, camera = create_preset("sphere", config.aspect_ratio)
    >>> image = render(scene, camera, config)  # (200, 300, 3) float32
"""

import logging
import time
from collections.abc import Callable

import numpy as np
import taichi as ti
import taichi.math as tm

from src.tracer.camera.pinhole import PinholeCamera, get_ray_jittered, setup_camera
from src.tracer.core.config import (
    DEFAULT_HORIZON_COLOR,
    DEFAULT_ZENITH_COLOR,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    RenderConfig,
)
from src.tracer.core.rng import seed_random_streams, stream_index
from src.tracer.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from src.tracer.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from src.tracer.scene.intersection import intersect_scene
from src.tracer.scene.manager import (
    MaterialType,
    SceneManager,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min and t_max for ray intersection; t_min keeps a scattered ray from
# re-hitting the surface it starts on
T_MIN = 0.001
T_MAX = 1e10

# =============================================================================
# Background
# =============================================================================

_horizon_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_zenith_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_background(
    horizon_color: tuple[float, float, float] = DEFAULT_HORIZON_COLOR,
    zenith_color: tuple[float, float, float] = DEFAULT_ZENITH_COLOR,
) -> None:
    """Set the two endpoints of the background gradient."""
    _horizon_color[None] = [float(c) for c in horizon_color]
    _zenith_color[None] = [float(c) for c in zenith_color]


@ti.func
def background_color(direction: vec3) -> vec3:
    """Evaluate the background gradient for a ray direction.

    Args:
        direction: The ray direction (any non-zero length).

    Returns:
        (1 - t) * horizon + t * zenith with t = 0.5 * (unit(direction).y + 1).
    """
    t = 0.5 * (tm.normalize(direction).y + 1.0)
    return (1.0 - t) * _horizon_color[None] + t * _zenith_color[None]


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT so that changing the
    resolution does not recompile kernels.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing the incoming ray.
        stream: The random stream owned by the current pixel.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(
            albedo, normal, stream
        )
    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Ray Color
# =============================================================================


@ti.func
def trace_ray(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Compute the color seen along a ray.

    Follows the ray for at most max_depth scattering events. A path that is
    still bouncing when the budget runs out contributes black, as does a path
    whose ray is absorbed.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        max_depth: Maximum number of intersections to follow. 0 or less
            returns black.
        stream: The random stream owned by the current pixel.

    Returns:
        The linear RGB color carried back along the path.
    """
    ray_origin = origin
    ray_direction = direction
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id, ray_direction, hit_record.normal, stream
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, jitter: ti.i32):
    """Trace one sample per pixel and fold it into the running average."""
    for i, j in ti.ndrange(width, height):
        stream = stream_index(i, j)
        ray = get_ray_jittered(i, j, width, height, stream, jitter)
        color = trace_ray(ray.origin, ray.direction, max_depth, stream)

        # Clamp negative values (numerical errors)
        color = tm.max(color, vec3(0.0, 0.0, 0.0))

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Trace one ray outside the pixel loop. Used for testing and debugging."""
    return trace_ray(origin, direction, max_depth, stream)


def trace_single_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Trace a single ray against the scene currently in the fields.

    The scene, background and random streams must already be set up.

    Returns:
        The ray color as an (R, G, B) tuple.
    """
    result = _trace_single_ray(vec3(*origin), vec3(*direction), max_depth, stream)
    return (float(result[0]), float(result[1]), float(result[2]))


def get_normalized_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    Returns the color buffer with values in [0, 1] range (clamped).
    The array shape is (height, width, 3) with dtype float32, top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (pixel row 0 is the bottom of the viewport)
    image = np.flipud(image)

    image = np.clip(image, 0.0, 1.0)

    return np.ascontiguousarray(image, dtype=np.float32)


# =============================================================================
# Render entry point
# =============================================================================


def render(
    scene: SceneManager,
    camera: PinholeCamera,
    config: RenderConfig,
    callback: Callable[[int, int], None] | None = None,
) -> np.ndarray:
    """Render a scene to a linear RGB image.

    The scene and camera are uploaded, every pixel's random stream is
    reseeded from config.seed, and config.samples_per_pixel passes are
    accumulated. Identical inputs and seed produce an identical image.

    Args:
        scene: The scene to render.
        camera: The camera to render from.
        config: Image size, sampling and background settings.
        callback: Optional function called after each pass with
            (samples_done, samples_total), e.g. to report progress.

    Returns:
        Array of shape (config.height, config.width, 3), float32, values in
        [0, 1], top row first, before gamma correction.
    """
    if abs(camera.aspect_ratio - config.aspect_ratio) > 1e-3:
        logger.warning(
            "Camera aspect ratio %.4f differs from image aspect ratio %.4f",
            camera.aspect_ratio,
            config.aspect_ratio,
        )

    scene.upload()
    setup_camera(camera)
    setup_background(config.horizon_color, config.zenith_color)
    seed_random_streams(config.seed)
    setup_render_target(config.width, config.height)

    logger.info(
        "Rendering %dx%d, %d samples per pixel, max depth %d, %d primitives",
        config.width,
        config.height,
        config.samples_per_pixel,
        config.max_depth,
        scene.get_primitive_count(),
    )

    start = time.perf_counter()
    jitter = 1 if config.jitter else 0
    for sample in range(config.samples_per_pixel):
        _render_one_spp(config.width, config.height, config.max_depth, jitter)
        if callback is not None:
            callback(sample + 1, config.samples_per_pixel)

    image = get_normalized_image_numpy()
    logger.info("Render finished in %.2f s", time.perf_counter() - start)
    return image
