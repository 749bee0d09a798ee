"""Render configuration.

RenderConfig bundles everything the integrator needs besides the scene and
the camera: image size, sampling budget, bounce depth, the two endpoints of
the sky gradient and the random seed. It is immutable and validated when
constructed, so a bad value fails before any kernel is launched.

Example:
    >>> config = RenderConfig(width=400, height=266, samples_per_pixel=50)
    >>> config.aspect_ratio
    1.5037593984962405
"""

from dataclasses import dataclass
from typing import Any

# Maximum supported image dimensions (fields are preallocated to this size to
# avoid kernel recompilation when the resolution changes)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Sky gradient endpoints: white at the horizon, light blue at the zenith
DEFAULT_HORIZON_COLOR = (1.0, 1.0, 1.0)
DEFAULT_ZENITH_COLOR = (0.5, 0.7, 1.0)


@dataclass(frozen=True)
class RenderConfig:
    """Immutable settings for a single render.

    Attributes:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).
        samples_per_pixel: Number of jittered camera rays averaged per pixel.
        max_depth: Maximum number of scattering events along a path. A path
            that is still bouncing when the budget runs out contributes black.
        horizon_color: Background color for rays pointing straight down.
        zenith_color: Background color for rays pointing straight up.
        seed: Seed for the per-pixel random streams. Identical inputs and seed
            produce identical images.
        jitter: Whether to jitter sample positions within each pixel. When
            False every sample goes through the pixel center.
    """

    width: int = 400
    height: int = 266
    samples_per_pixel: int = 100
    max_depth: int = 50
    horizon_color: tuple[float, float, float] = DEFAULT_HORIZON_COLOR
    zenith_color: tuple[float, float, float] = DEFAULT_ZENITH_COLOR
    seed: int = 0
    jitter: bool = True

    def __post_init__(self) -> None:
        if not 0 < self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(
                f"Image width {self.width} is outside [1, {MAX_IMAGE_WIDTH}]"
            )
        if not 0 < self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image height {self.height} is outside [1, {MAX_IMAGE_HEIGHT}]"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        for name in ("horizon_color", "zenith_color"):
            color = getattr(self, name)
            if len(color) != 3:
                raise ValueError(f"{name} must have 3 components, got {len(color)}")
            for i, component in enumerate(color):
                if component < 0.0 or component > 1.0:
                    raise ValueError(
                        f"{name} component {i} = {component} is outside [0, 1]"
                    )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Build a config from a dictionary, ignoring unknown keys.

        Args:
            data: Mapping with any subset of the RenderConfig fields. Color
                entries may be lists.

        Returns:
            A validated RenderConfig.
        """
        kwargs: dict[str, Any] = {}
        for name in cls.__dataclass_fields__:
            if name in data:
                value = data[name]
                if name in ("horizon_color", "zenith_color"):
                    value = tuple(float(c) for c in value)
                kwargs[name] = value
        return cls(**kwargs)
