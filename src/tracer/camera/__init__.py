"""Camera module for view and ray generation.

Components:
    pinhole: Look-at perspective camera with optional thin-lens defocus

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Support look-at positioning with up vector
    - Offset ray origins across the lens aperture for depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_camera_origin,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_origin",
    "get_camera_info",
]
