"""Whitted-style sphere ray tracer built on Taichi.

This package renders scenes of spheres with reflection, refraction, emission
and hard shadows, with every pixel shaded in parallel by Taichi kernels:
- Recursive reflection / refraction with a Fresnel blend
- Direct lighting from emissive spheres with shadow rays
- Pinhole camera projection
- PPM / PNG export

Subpackages:
    core: Vector kernel, rays, the tracer and the banded renderer
    geometry: Sphere primitive and ray-sphere intersection
    scene: Sphere storage, nearest-hit search and scene management
    camera: Pinhole camera ray generation
    output: 8-bit quantization and image export
"""

__version__ = "0.1.0"
