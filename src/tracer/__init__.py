"""Taichi-based recursive ray tracer for simple analytic shapes.

This package renders scenes built from spheres, cubes, cylinders, squares and
disks with diffuse and metal materials, lit only by a sky gradient:
- Closest-hit intersection over a flat list of primitives
- Lambertian and fuzzy metal scattering
- Pinhole camera with optional thin-lens defocus
- Jittered multi-sample anti-aliasing with deterministic random streams

Subpackages:
    core: Vector utilities, random streams, render configuration, integrator
    geometry: Shape primitives and intersection algorithms
    materials: Lambertian and metal scattering models
    scene: Scene intersection fields, scene manager and preset scenes
    camera: Camera model with ray generation
    preview: Gamma correction and PPM/PNG export
"""

__version__ = "0.1.0"
