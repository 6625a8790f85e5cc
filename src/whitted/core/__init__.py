"""Core rendering module.

This module contains the fundamental building blocks of the tracer:

Components:
    vector: Vector kernel (dot, magnitude, guarded normalization, reflect,
        refract)
    ray: Ray data structure
    tracer: Whitted shading, trace statistics and the image-loop driver
    renderer: Banded rendering with progress callbacks

All compute-intensive operations use Taichi kernels.
"""

from .ray import Ray, make_ray, ray_at
from .vector import (
    dot,
    magnitude,
    mix,
    normalized,
    reflect,
    refract,
    sqr_magnitude,
    vec3,
)

# Note: tracer and renderer are NOT imported here to avoid circular imports.
# Import directly from src.whitted.core.tracer or src.whitted.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "dot",
    "sqr_magnitude",
    "magnitude",
    "normalized",
    "mix",
    "reflect",
    "refract",
]
