"""Geometry module for the sphere primitive.

Components:
    sphere: Sphere struct, geometric ray-sphere intersection and the
        light-source predicate

All intersection routines are Taichi functions (@ti.func) called from the
tracer's kernels. Spheres are the only supported primitive.
"""

from .sphere import Sphere, intersect_sphere, is_light, make_sphere

__all__ = [
    "Sphere",
    "intersect_sphere",
    "is_light",
    "make_sphere",
]
