"""Built-in demo scenes with their camera placements.

Every preset stands its objects on a large horizontal ground square and
views them through the same lens: 43 degree vertical field of view, aperture
0.05 and focus distance 10.

Presets:
    sphere: A red fuzzy-metal sphere on a gray ground
    plane_cube: A dark metal cube on a brown ground
    all_objects: Sphere, cube and cylinder side by side
    all_objects_alt_camera: The same objects seen from higher up

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.tracer.scene.presets import create_preset
    >>> scene, camera = create_preset("all_objects", aspect_ratio=3.0 / 2.0)
"""

from src.tracer.camera.pinhole import PinholeCamera
from src.tracer.scene.manager import SceneManager

# Shared camera lens settings
VFOV = 43.0
APERTURE = 0.05
FOCUS_DIST = 10.0
VUP = (0.0, 1.0, 0.0)

# Default image aspect ratio
ASPECT_RATIO = 3.0 / 2.0

# Edge length of the ground square
GROUND_SIZE = 1000.0


def _make_camera(
    lookfrom: tuple[float, float, float],
    lookat: tuple[float, float, float],
    aspect_ratio: float,
) -> PinholeCamera:
    return PinholeCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=VUP,
        vfov=VFOV,
        aspect_ratio=aspect_ratio,
        aperture=APERTURE,
        focus_dist=FOCUS_DIST,
    )


def _add_ground(scene: SceneManager, albedo: tuple[float, float, float]) -> None:
    ground = scene.add_lambertian_material(albedo)
    scene.add_horizontal_square((0.0, 0.0, 0.0), GROUND_SIZE, ground)


def create_sphere_scene(
    aspect_ratio: float = ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Create a single red metal sphere resting on a gray ground."""
    scene = SceneManager()
    _add_ground(scene, (0.5, 0.5, 0.5))

    red_metal = scene.add_metal_material((0.8, 0.2, 0.2), fuzz=0.1)
    scene.add_sphere((0.0, 1.0, 0.0), 1.0, red_metal)

    camera = _make_camera((0.0, 2.0, 5.0), (0.0, 1.0, 0.0), aspect_ratio)
    return scene, camera


def create_plane_cube_scene(
    aspect_ratio: float = ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Create a dim metal cube on a brown ground."""
    scene = SceneManager()
    _add_ground(scene, (0.4, 0.15, 0.05))

    dark_metal = scene.add_metal_material((0.1, 0.2, 0.2), fuzz=0.2)
    scene.add_cube((-1.0, 0.0, -1.0), (1.0, 2.0, 1.0), dark_metal)

    camera = _make_camera((0.0, 3.0, 7.0), (0.0, 1.0, 0.0), aspect_ratio)
    return scene, camera


def _build_all_objects() -> SceneManager:
    scene = SceneManager()
    _add_ground(scene, (0.5, 0.5, 0.5))

    sphere_metal = scene.add_metal_material((0.2, 0.7, 0.7), fuzz=0.1)
    scene.add_sphere((0.0, 1.0, 1.0), 1.0, sphere_metal)

    cube_metal = scene.add_metal_material((0.2, 0.7, 0.7), fuzz=0.1)
    scene.add_cube((-4.5, 0.0, 0.0), (-2.5, 2.0, 2.0), cube_metal)

    lime = scene.add_lambertian_material((0.8, 1.0, 0.2))
    scene.add_cylinder((3.5, 0.0, 1.0), (0.0, 1.0, 0.0), 0.8, 2.0, lime)
    return scene


def create_all_objects_scene(
    aspect_ratio: float = ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Create a sphere, a cube and a cylinder side by side."""
    camera = _make_camera((0.0, 3.0, 10.0), (0.0, 1.0, 1.0), aspect_ratio)
    return _build_all_objects(), camera


def create_all_objects_alt_camera_scene(
    aspect_ratio: float = ASPECT_RATIO,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the all_objects scene viewed from a higher vantage point."""
    camera = _make_camera((0.0, 5.0, 10.0), (0.0, 1.0, 1.0), aspect_ratio)
    return _build_all_objects(), camera


_PRESETS = {
    "sphere": create_sphere_scene,
    "plane_cube": create_plane_cube_scene,
    "all_objects": create_all_objects_scene,
    "all_objects_alt_camera": create_all_objects_alt_camera_scene,
}

PRESET_NAMES = tuple(_PRESETS)


def create_preset(
    name: str, aspect_ratio: float = ASPECT_RATIO
) -> tuple[SceneManager, PinholeCamera]:
    """Build a preset scene and its camera by name.

    Args:
        name: One of PRESET_NAMES.
        aspect_ratio: Aspect ratio for the camera, normally width / height of
            the image being rendered.

    Returns:
        Tuple of (scene, camera).

    Raises:
        ValueError: If the preset name is unknown.
    """
    try:
        factory = _PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown preset '{name}', expected one of: {', '.join(PRESET_NAMES)}"
        ) from None
    return factory(aspect_ratio)
