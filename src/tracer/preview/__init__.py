"""Preview module for image output.

Components:
    export: Gamma correction, 8-bit quantization, PPM and PNG writers

Example:
    >>> from src.tracer.preview import save_image
    >>> save_image(image, "output.png")
"""

from src.tracer.preview.export import (
    apply_gamma,
    format_ppm,
    image_to_uint8,
    save_image,
    save_png,
    write_ppm,
)

__all__ = [
    "apply_gamma",
    "image_to_uint8",
    "format_ppm",
    "write_ppm",
    "save_png",
    "save_image",
]
