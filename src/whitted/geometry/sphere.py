"""Sphere primitive and the geometric ray-sphere intersection test.

The intersection uses the geometric formulation rather than the quadratic
formula: project the center onto the ray, then measure the perpendicular
distance.

    L   = center - origin
    tca = dot(L, direction)          # center projected onto the ray
    d2  = dot(L, L) - tca * tca      # squared distance center -> ray line
    thc = sqrt(r^2 - d2)             # half chord
    t0, t1 = tca - thc, tca + thc

A sphere whose center projects behind the ray origin (``tca < 0``) is reported
as a miss. This also misses rays that start inside a sphere whose center lies
behind them; the limitation is kept on purpose (see tests).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.geometry.sphere import intersect_sphere, make_sphere
    >>> # Use intersect_sphere within a Taichi kernel
"""

import taichi as ti

from src.whitted.core.ray import Ray
from src.whitted.core.vector import dot, vec3


@ti.dataclass
class Sphere:
    """A sphere with Whitted material properties.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        sqr_radius: Always radius * radius; stored so the intersection test
            does not recompute it.
        surface_color: Diffuse / tint color (RGB, linear).
        emission: Emitted radiance (RGB). The sphere acts as a light source
            when emission.x > 0.
        transparency: Fraction of refracted light in [0, 1].
        reflection: Reflectivity in [0, 1]. Any non-zero value (or non-zero
            transparency) selects the specular shading branch.
    """

    center: vec3
    radius: ti.f32
    sqr_radius: ti.f32
    surface_color: vec3
    emission: vec3
    transparency: ti.f32
    reflection: ti.f32


@ti.func
def intersect_sphere(sphere: Sphere, ray: Ray):
    """Find where a ray crosses a sphere.

    Args:
        sphere: The sphere to test.
        ray: The ray to test (direction should be normalized).

    Returns:
        A tuple ``(hit, t0, t1)``. ``hit`` is 1 when the ray line crosses the
        sphere in front of the origin; then ``t0 <= t1`` are the two
        distances along the ray. ``t0`` may be negative when the origin is
        inside the sphere. On a miss, ``hit`` is 0 and both distances are 0.
    """
    hit = 0
    t0 = 0.0
    t1 = 0.0

    # Line from ray origin to sphere center
    to_center = sphere.center - ray.origin
    # Distance to the center's projection, along the ray
    tca = dot(to_center, ray.direction)
    # tca < 0: center is behind the origin
    if tca >= 0.0:
        # Squared perpendicular distance from center to the ray
        d2 = dot(to_center, to_center) - tca * tca
        if d2 <= sphere.sqr_radius:
            thc = ti.sqrt(sphere.sqr_radius - d2)
            hit = 1
            t0 = tca - thc
            t1 = tca + thc

    return hit, t0, t1


@ti.func
def is_light(sphere: Sphere) -> ti.i32:
    """Check whether a sphere emits light.

    Only the first emission channel is consulted; a sphere emitting pure
    green or blue light is not treated as a light source.
    """
    return sphere.emission.x > 0.0


@ti.func
def make_sphere(
    center: vec3,
    radius: ti.f32,
    surface_color: vec3,
    emission: vec3,
    transparency: ti.f32,
    reflection: ti.f32,
) -> Sphere:
    """Create a sphere inside a Taichi kernel, deriving sqr_radius."""
    return Sphere(
        center=center,
        radius=radius,
        sqr_radius=radius * radius,
        surface_color=surface_color,
        emission=emission,
        transparency=transparency,
        reflection=reflection,
    )
