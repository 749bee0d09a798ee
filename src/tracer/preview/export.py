"""Image export utilities for rendered images.

This module turns the linear float image returned by render() into files.

Supported formats:
    - PPM (plain-text P3, written directly)
    - PNG (8-bit via Pillow)

Both formats share the same conversion: square-root gamma per channel, then
each channel c becomes int(256 * clamp(c, 0, 0.999)), so 1.0 maps to 255 and
every 8-bit level covers an equal slice of [0, 1).

Example:
    >>> from src.tracer.preview.export import save_image
    >>> image = render(scene, camera, config)
    >>> save_image(image, "output.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Upper clamp before quantization so that 1.0 lands in the top bucket
_MAX_INTENSITY = 0.999


def _check_image(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    array = np.asarray(image, dtype=np.float64)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {array.shape}")
    return array


def apply_gamma(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Apply gamma-2 correction (square root per channel).

    Negative and non-finite values are treated as 0 so the result is always
    defined.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        Gamma-corrected float32 array of the same shape.
    """
    array = _check_image(image)
    array = np.nan_to_num(array, nan=0.0, posinf=1.0, neginf=0.0)
    return np.sqrt(np.maximum(array, 0.0)).astype(np.float32)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit output values.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    corrected = apply_gamma(image).astype(np.float64)
    clamped = np.clip(corrected, 0.0, _MAX_INTENSITY)
    return (256.0 * clamped).astype(np.uint8)


def format_ppm(image: npt.NDArray[np.floating]) -> str:
    """Serialize an image as plain-text PPM.

    The header is "P3", "<width> <height>", "255", followed by one
    "R G B" line per pixel, rows from top to bottom and pixels from left to
    right.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.

    Returns:
        The PPM document, newline terminated.
    """
    pixels = image_to_uint8(image)
    height, width, _ = pixels.shape
    lines = ["P3", f"{width} {height}", "255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Write an image to a plain-text PPM file."""
    Path(filepath).write_text(format_ppm(image), encoding="ascii")
    logger.info("Wrote PPM image to %s", filepath)


def save_png(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Write an image to a PNG file with Pillow."""
    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath)
    logger.info("Wrote PNG image to %s", filepath)


def save_image(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Write an image, choosing the format from the file extension.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Destination ending in .ppm or .png.

    Raises:
        ValueError: If the extension is not supported.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        write_ppm(image, filepath)
    elif suffix == ".png":
        save_png(image, filepath)
    else:
        raise ValueError(f"Unsupported image format '{suffix}', use .ppm or .png")

