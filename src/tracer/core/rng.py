"""Per-pixel random streams and random direction samplers.

Every stochastic decision in the tracer (sub-pixel jitter, lens sampling,
diffuse bounce directions, metal fuzz) draws from a numbered stream. Each
pixel of the render owns exactly one stream, so the parallel pixel loop never
shares random state between threads and the image depends only on the seed,
not on how Taichi schedules the work.

A stream is a 32-bit LCG state; each draw advances it and passes it through
the PCG output permutation before taking the top 24 bits as a float in
[0, 1).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.core.rng import seed_random_streams, random_float
    >>> seed_random_streams(42)
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     return random_float(0)
"""

import taichi as ti
import taichi.math as tm

from src.tracer.core.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from src.tracer.core.ray import length_squared

# Type alias for 3D vectors
vec3 = tm.vec3

# One stream per pixel of the largest supported image
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

# LCG step and PCG output permutation constants
_LCG_MULTIPLIER = 747796405
_LCG_INCREMENT = 1013904223
_PERMUTE_MULTIPLIER = 277803737

# Attempts before rejection sampling gives up and returns its last candidate
MAX_REJECTION_ATTEMPTS = 100

# Candidates shorter than this are rejected as degenerate
MIN_SAMPLE_LENGTH_SQUARED = 1e-12

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """Apply the PCG output permutation to a 32-bit state."""
    shift = (state >> ti.cast(28, ti.u32)) + ti.cast(4, ti.u32)
    word = ((state >> shift) ^ state) * ti.cast(_PERMUTE_MULTIPLIER, ti.u32)
    return (word >> ti.cast(22, ti.u32)) ^ word


@ti.func
def _hash(value: ti.u32) -> ti.u32:
    """Hash a 32-bit value with one LCG step followed by the permutation."""
    state = value * ti.cast(_LCG_MULTIPLIER, ti.u32) + ti.cast(_LCG_INCREMENT, ti.u32)
    return _permute(state)


@ti.kernel
def _seed_streams(seed: ti.i32):
    base = _hash(ti.cast(seed, ti.u32))
    for k in _rng_state:
        _rng_state[k] = _hash(ti.cast(k, ti.u32) ^ base)


def seed_random_streams(seed: int) -> None:
    """Reset every random stream from a seed.

    Stream k starts from hash(k ^ hash(seed)), so streams are decorrelated
    from each other and fully determined by the seed.

    Args:
        seed: Any integer; only its low 31 bits are used.
    """
    _seed_streams(seed & 0x7FFFFFFF)


@ti.func
def stream_index(pixel_i: ti.i32, pixel_j: ti.i32) -> ti.i32:
    """Get the stream owned by pixel (i, j)."""
    return pixel_j * MAX_IMAGE_WIDTH + pixel_i


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from a stream.

    Args:
        stream: Index of the stream to advance. Concurrent callers must use
            distinct streams.

    Returns:
        A float with 24 bits of randomness.
    """
    state = _rng_state[stream] * ti.cast(_LCG_MULTIPLIER, ti.u32) + ti.cast(
        _LCG_INCREMENT, ti.u32
    )
    _rng_state[stream] = state
    word = _permute(state)
    return ti.cast(word >> ti.cast(8, ti.u32), ti.f32) * (1.0 / 16777216.0)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling. Candidates outside the sphere and candidates at
    (or numerically at) the origin are both rejected and redrawn, so the
    result can be normalized safely.

    Args:
        stream: The random stream to draw from.

    Returns:
        A random point p with 1e-12 < |p|^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            p = vec3(
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
            )
            len_sq = length_squared(p)
            if len_sq < 1.0 and len_sq > MIN_SAMPLE_LENGTH_SQUARED:
                found = True
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return tm.normalize(random_in_unit_sphere(stream))


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for thin-lens defocus sampling.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            p = vec3(
                random_float(stream) * 2.0 - 1.0,
                random_float(stream) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p
