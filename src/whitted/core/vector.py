"""Vector kernel for the Whitted tracer.

Component-wise arithmetic (add, sub, mul, div, negate) is provided natively by
``taichi.math.vec3`` operators. This module adds the handful of reductions and
helpers the tracer relies on with exact, guarded semantics:

- ``normalized`` returns the zero vector unchanged instead of dividing by zero.
- ``refract`` reports total internal reflection instead of producing NaN.

All functions are ``@ti.func`` and must be called from Taichi kernels. Every
vector is single precision (``ti.f32``).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.vector import normalized, vec3
    >>> @ti.kernel
    ... def unit_x() -> vec3:
    ...     return normalized(vec3(3.0, 0.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a.x*b.x + a.y*b.y + a.z*b.z."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def sqr_magnitude(v: vec3) -> ti.f32:
    """Compute the squared magnitude of a vector (dot(v, v))."""
    return dot(v, v)


@ti.func
def magnitude(v: vec3) -> ti.f32:
    """Compute the Euclidean magnitude of a vector."""
    return ti.sqrt(sqr_magnitude(v))


@ti.func
def normalized(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        ``v * (1 / |v|)`` when ``|v|^2 > 0``, otherwise ``v`` itself (the
        zero vector is returned unchanged, never NaN).
    """
    result = v
    sqr_normal = sqr_magnitude(v)
    if sqr_normal > 0.0:
        inv_normal = 1.0 / ti.sqrt(sqr_normal)
        result = v * inv_normal
    return result


@ti.func
def mix(a: ti.f32, b: ti.f32, t: ti.f32) -> ti.f32:
    """Linear blend b*t + a*(1-t)."""
    return b * t + a * (1.0 - t)


@ti.func
def reflect(direction: vec3, normal: vec3) -> vec3:
    """Mirror a direction about a normal.

    The result is not normalized; the tracer normalizes it before use.

    Args:
        direction: The incoming direction (pointing toward the surface).
        normal: The surface normal, facing against ``direction``.

    Returns:
        ``direction - normal * 2 * dot(direction, normal)``.
    """
    return direction - normal * 2.0 * dot(direction, normal)


@ti.func
def refract(direction: vec3, normal: vec3, eta: ti.f32):
    """Bend a direction through an interface using Snell's law.

    Args:
        direction: The incoming direction (normalized).
        normal: The surface normal, facing against ``direction``.
        eta: Ratio of refractive indices (incident / transmitted).

    Returns:
        A tuple ``(valid, refracted)``. ``valid`` is 0 when the discriminant
        ``k = 1 - eta^2 (1 - cosi^2)`` is negative (total internal
        reflection); ``refracted`` is then the zero vector. Otherwise
        ``refracted = direction*eta + normal*(eta*cosi - sqrt(k))``,
        not normalized.
    """
    cosi = -dot(normal, direction)
    k = 1.0 - eta * eta * (1.0 - cosi * cosi)
    valid = 0
    refracted = vec3(0.0, 0.0, 0.0)
    if k >= 0.0:
        valid = 1
        refracted = direction * eta + normal * (eta * cosi - ti.sqrt(k))
    return valid, refracted
