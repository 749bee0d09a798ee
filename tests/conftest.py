"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate the module-level fields declared by the tracer.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so that Taichi is initialized before fields are declared
    from src.tracer.core.integrator import clear_render_target, setup_background
    from src.tracer.core.rng import seed_random_streams
    from src.tracer.materials.lambertian import clear_lambertian_materials
    from src.tracer.materials.metal import clear_metal_materials
    from src.tracer.scene.intersection import clear_scene
    from src.tracer.scene.manager import _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        _clear_material_tracking()
        clear_render_target()
        setup_background()

    _clear_all()
    seed_random_streams(1234)

    yield

    _clear_all()

