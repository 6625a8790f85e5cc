"""Scene-level sphere storage, nearest-hit search and shadow-ray queries.

The scene stores spheres in Taichi fields (Structure-of-Arrays layout) so
kernels can scan them. The scan is linear in declaration order; there is no
acceleration structure.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0, 0, -5), 1.0, surface_color=(0.5, 0.5, 0.5))
    0
    >>> # Use find_nearest / is_occluded within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray
from src.whitted.geometry.sphere import Sphere, intersect_sphere

Color = tuple[float, float, float]


@ti.dataclass
class NearestHit:
    """Closest sphere hit along a ray.

    Attributes:
        hit: 1 if any sphere was hit in front of the origin, 0 on a miss.
        t: Effective distance to the hit. This is the far intersection when
            the origin lies inside the sphere. Only valid if hit == 1.
        index: Scene index of the sphere that was hit, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    index: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_sqr_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_surface_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_emissions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_transparencies = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_reflections = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is not cleared but will
    be overwritten when new spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    surface_color: Color,
    emission: Color = (0.0, 0.0, 0.0),
    transparency: float = 0.0,
    reflection: float = 0.0,
) -> int:
    """Append a sphere to the scene fields.

    No material validation happens here; ``SceneManager`` validates before
    calling this.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. The squared radius is derived here.
        surface_color: Diffuse / tint color (RGB).
        emission: Emitted radiance (RGB).
        transparency: Refraction weight in [0, 1].
        reflection: Reflectivity in [0, 1].

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_sqr_radii[idx] = radius * radius
    sphere_surface_colors[idx] = [surface_color[0], surface_color[1], surface_color[2]]
    sphere_emissions[idx] = [emission[0], emission[1], emission[2]]
    sphere_transparencies[idx] = transparency
    sphere_reflections[idx] = reflection
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def load_sphere(i: ti.i32) -> Sphere:
    """Assemble the Sphere struct stored at scene index i."""
    return Sphere(
        center=sphere_centers[i],
        radius=sphere_radii[i],
        sqr_radius=sphere_sqr_radii[i],
        surface_color=sphere_surface_colors[i],
        emission=sphere_emissions[i],
        transparency=sphere_transparencies[i],
        reflection=sphere_reflections[i],
    )


@ti.func
def find_nearest(ray: Ray) -> NearestHit:
    """Find the closest sphere the ray hits in front of its origin.

    Scans the spheres in scene order. When the origin is inside a sphere
    (t0 < 0) the far intersection t1 is used instead. A sphere only replaces
    the current best when strictly closer, so at a tied distance the first
    sphere in scene order wins.

    Args:
        ray: The ray to test.

    Returns:
        A NearestHit; ``hit == 0`` when no sphere is hit.
    """
    nearest_t = tm.inf
    nearest_index = -1

    for i in range(num_spheres[None]):
        hit, t0, t1 = intersect_sphere(load_sphere(i), ray)
        if hit == 1:
            t = t0
            if t < 0.0:
                t = t1
            if t < nearest_t:
                nearest_t = t
                nearest_index = i

    did_hit = 0
    if nearest_index >= 0:
        did_hit = 1
    else:
        nearest_t = 0.0

    return NearestHit(hit=did_hit, t=nearest_t, index=nearest_index)


@ti.func
def is_occluded(ray: Ray, light_index: ti.i32, shaded_index: ti.i32) -> ti.i32:
    """Test a shadow ray against every sphere except the light and the shaded one.

    Any reported intersection blocks the light completely; the distance to
    the hit is not compared with the distance to the light.

    Args:
        ray: The shadow ray, starting just above the shaded surface.
        light_index: Scene index of the light the ray points at.
        shaded_index: Scene index of the sphere being shaded.

    Returns:
        1 if some other sphere blocks the ray, 0 otherwise.
    """
    blocked = 0
    for j in range(num_spheres[None]):
        if blocked == 0 and j != light_index and j != shaded_index:
            hit, _t0, _t1 = intersect_sphere(load_sphere(j), ray)
            if hit == 1:
                blocked = 1
    return blocked
