"""Look-at camera model for perspective ray generation.

This module implements the camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Jittered sampling for anti-aliasing
- Thin-lens defocus blur (aperture, focus_dist); aperture 0 is a pinhole

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The frame is computed on the host with NumPy and uploaded to Taichi fields by
setup_camera(); ray generation runs inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> camera = PinholeCamera(
    ...     lookfrom=(0.0, 2.0, 5.0),
    ...     lookat=(0.0, 1.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=43.0,
    ...     aspect_ratio=3.0 / 2.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.tracer.core.ray import Ray, make_ray, vec3
from src.tracer.core.rng import random_float, random_in_unit_disk

# Below this |cross(vup, w)| the up vector is considered parallel to the view
_PARALLEL_EPSILON = 1e-8

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a look-at perspective camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole with everything in focus.
        focus_dist: Distance from lookfrom to the plane in perfect focus.

    Raises:
        ValueError: On construction, if the parameters cannot form a camera.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0

    def __post_init__(self) -> None:
        lookfrom = np.asarray(self.lookfrom, dtype=np.float64)
        lookat = np.asarray(self.lookat, dtype=np.float64)
        vup = np.asarray(self.vup, dtype=np.float64)
        if lookfrom.shape != (3,) or lookat.shape != (3,) or vup.shape != (3,):
            raise ValueError("lookfrom, lookat and vup must have 3 components")

        view = lookfrom - lookat
        if np.linalg.norm(view) == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(vup) == 0.0:
            raise ValueError("vup must be non-zero")
        w = view / np.linalg.norm(view)
        if np.linalg.norm(np.cross(vup / np.linalg.norm(vup), w)) < _PARALLEL_EPSILON:
            raise ValueError("vup must not be parallel to the view direction")

        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if not self.focus_dist > 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")

    def frame(self) -> dict[str, np.ndarray | float]:
        """Compute the camera frame and viewport on the host.

        The viewport sits focus_dist in front of the camera, so its extent is
        scaled by focus_dist; with aperture 0 the scale cancels out of the ray
        directions.

        Returns:
            Dictionary with float32 arrays origin, u, v, w, horizontal,
            vertical and lower_left, and the float lens_radius.
        """
        theta = math.radians(self.vfov)
        h = math.tan(theta / 2.0)
        viewport_height = 2.0 * h
        viewport_width = self.aspect_ratio * viewport_height

        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookat = np.array(self.lookat, dtype=np.float64)
        vup = np.array(self.vup, dtype=np.float64)

        # w points from lookat toward lookfrom (backward)
        w = lookfrom - lookat
        w = w / np.linalg.norm(w)

        # u points right (perpendicular to w and vup)
        u = np.cross(vup, w)
        u = u / np.linalg.norm(u)

        # v points up in the camera's frame
        v = np.cross(w, u)

        horizontal = self.focus_dist * viewport_width * u
        vertical = self.focus_dist * viewport_height * v
        lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - self.focus_dist * w

        return {
            "origin": lookfrom.astype(np.float32),
            "u": u.astype(np.float32),
            "v": v.astype(np.float32),
            "w": w.astype(np.float32),
            "horizontal": horizontal.astype(np.float32),
            "vertical": vertical.astype(np.float32),
            "lower_left": lower_left.astype(np.float32),
            "lens_radius": self.aperture / 2.0,
        }


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

# Half the aperture
_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera) -> None:
    """Upload a camera's frame to the Taichi fields.

    Must be called before any kernel that generates camera rays.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.
    """
    frame = camera.frame()

    _camera_origin[None] = frame["origin"].tolist()
    _camera_u[None] = frame["u"].tolist()
    _camera_v[None] = frame["v"].tolist()
    _camera_w[None] = frame["w"].tolist()
    _viewport_horizontal[None] = frame["horizontal"].tolist()
    _viewport_vertical[None] = frame["vertical"].tolist()
    _lower_left_corner[None] = frame["lower_left"].tolist()
    _lens_radius[None] = frame["lens_radius"]


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    The ray starts exactly at lookfrom, ignoring the lens. Coordinates are:
    - s = 0: left edge of image, s = 1: right edge
    - t = 0: bottom edge of image, t = 1: top edge

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray with origin at the camera position and unit direction toward
        the specified point on the viewport.
    """
    point_on_viewport = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    origin = _camera_origin[None]
    direction = tm.normalize(point_on_viewport - origin)

    return make_ray(origin, direction)


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    stream: ti.i32,
    jitter: ti.i32,
) -> Ray:
    """Generate a camera ray for one sample of a pixel.

    With jitter on, the sample position is uniformly distributed over the
    pixel footprint; with jitter off it is the pixel center. When the lens
    radius is positive the ray origin is also moved to a random point on the
    lens disk, keeping the focus plane sharp.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        stream: The random stream owned by this pixel.
        jitter: 1 to jitter within the pixel, 0 to use the pixel center.

    Returns:
        A Ray with a unit direction.
    """
    jitter_s = 0.5
    jitter_t = 0.5
    if jitter != 0:
        jitter_s = random_float(stream)
        jitter_t = random_float(stream)

    s = (ti.cast(pixel_i, ti.f32) + jitter_s) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + jitter_t) / ti.cast(height, ti.f32)

    origin = _camera_origin[None]
    lens_radius = _lens_radius[None]
    if lens_radius > 0.0:
        rd = lens_radius * random_in_unit_disk(stream)
        origin = origin + _camera_u[None] * rd.x + _camera_v[None] * rd.y

    point_on_viewport = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    direction = tm.normalize(point_on_viewport - origin)

    return make_ray(origin, direction)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (position) in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left as
        tuples and lens_radius as a float.
    """
    info: dict[str, tuple[float, float, float] | float] = {}
    for name, vec_field in (
        ("origin", _camera_origin),
        ("u", _camera_u),
        ("v", _camera_v),
        ("w", _camera_w),
        ("horizontal", _viewport_horizontal),
        ("vertical", _viewport_vertical),
        ("lower_left", _lower_left_corner),
    ):
        value = vec_field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    info["lens_radius"] = float(_lens_radius[None])
    return info
