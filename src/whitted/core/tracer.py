"""Whitted-style recursive tracer and the image-loop driver.

Each camera ray is shaded by finding the nearest sphere and then taking one
of two branches:

- Specular: for reflective or transparent spheres below the depth limit, a
  mirror ray and (for transparent spheres) a refracted ray are traced and
  blended with a Fresnel factor, then tinted by the surface color.
- Diffuse: for everything else, each emissive sphere contributes
  Lambertian light unless a shadow ray towards it is blocked.

Both branches add the sphere's own emission. Rays that miss every sphere
return a uniform background color.

Taichi functions cannot recurse, so the recursion tree is walked with an
explicit depth-first stack of (ray, depth, weight) entries. The shaded color
is linear in the colors of the child rays, so each child carries the factor
its parent would have multiplied it by, and the final color is the weighted
sum of every node's local term. The depth limit is the only termination
guarantee and is checked for every node.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.tracer import render_image, trace
    >>> from src.whitted.scene.default_scene import create_default_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> image = render_image(scene, 640, 480, fov=camera.fov)
    >>> color = trace((0, 0, 0), (0, 0, -1), scene)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti

from src.whitted.camera.pinhole import PinholeCamera, get_primary_ray, setup_camera
from src.whitted.core.ray import Ray, make_ray, ray_at
from src.whitted.core.vector import dot, mix, normalized, reflect, refract, vec3
from src.whitted.geometry.sphere import Sphere, is_light
from src.whitted.scene.intersection import (
    find_nearest,
    is_occluded,
    load_sphere,
    num_spheres,
)

if TYPE_CHECKING:
    from src.whitted.scene.manager import SceneManager

# =============================================================================
# Tracing Constants
# =============================================================================

# Default recursion limit for reflection / refraction rays
MAX_RAY_DEPTH = 5

# Largest limit accepted by set_max_depth (bounds the local work stack)
MAX_SUPPORTED_DEPTH = 8

# Depth-first expansion of a binary tree of height n never holds more
# than n + 1 pending entries
_STACK_SIZE = MAX_SUPPORTED_DEPTH + 2

# Offset along the normal for secondary ray origins (avoids self-intersection)
BIAS = 1e-4

# Index of refraction of every transparent sphere
IOR = 1.1

# Color returned for rays that escape the scene
BACKGROUND_LEVEL = 2.0
BACKGROUND_COLOR = (BACKGROUND_LEVEL, BACKGROUND_LEVEL, BACKGROUND_LEVEL)

_max_depth = MAX_RAY_DEPTH


def set_max_depth(max_depth: int) -> None:
    """Set the recursion limit used by trace() and render_image().

    Args:
        max_depth: Depth at which reflective and transparent spheres stop
            spawning secondary rays and are shaded as diffuse instead.

    Raises:
        ValueError: If max_depth is outside [0, MAX_SUPPORTED_DEPTH].
    """
    global _max_depth
    if not 0 <= max_depth <= MAX_SUPPORTED_DEPTH:
        raise ValueError(
            f"Max depth must be in [0, {MAX_SUPPORTED_DEPTH}], got {max_depth}"
        )
    _max_depth = max_depth


def get_max_depth() -> int:
    """Get the current recursion limit."""
    return _max_depth


# =============================================================================
# Trace Statistics
# =============================================================================

_ray_count = ti.field(dtype=ti.i32, shape=())
_deepest = ti.field(dtype=ti.i32, shape=())


@dataclass
class TraceStats:
    """Counters collected while tracing.

    Attributes:
        ray_count: Number of primary and secondary rays shaded (shadow rays
            are not counted).
        deepest_depth: Largest depth of any shaded ray.
    """

    ray_count: int
    deepest_depth: int


def reset_trace_stats() -> None:
    """Zero the trace counters."""
    _ray_count[None] = 0
    _deepest[None] = 0


def get_trace_stats() -> TraceStats:
    """Read the counters accumulated since the last reset."""
    return TraceStats(ray_count=int(_ray_count[None]), deepest_depth=int(_deepest[None]))


# =============================================================================
# Shading
# =============================================================================


@ti.func
def _shade_diffuse(hit_point: vec3, normal: vec3, hit_index: ti.i32, sphere: Sphere) -> vec3:
    """Direct lighting from every emissive sphere, with hard shadows.

    Args:
        hit_point: The shaded point.
        normal: The surface normal, facing the incoming ray.
        hit_index: Scene index of the shaded sphere.
        sphere: The shaded sphere.

    Returns:
        Sum over lights of surface_color * transmission * max(0, n.l) * emission.
    """
    surface_color = vec3(0.0, 0.0, 0.0)
    shadow_origin = hit_point + normal * BIAS

    for i in range(num_spheres[None]):
        light = load_sphere(i)
        if is_light(light):
            light_dir = normalized(light.center - hit_point)
            shadow_ray = make_ray(shadow_origin, light_dir)
            transmission = 1.0
            if is_occluded(shadow_ray, i, hit_index) == 1:
                transmission = 0.0
            surface_color += (
                sphere.surface_color
                * transmission
                * ti.max(0.0, dot(normal, light_dir))
                * light.emission
            )

    return surface_color


@ti.func
def trace_ray(ray: Ray, depth: ti.i32, max_depth: ti.i32) -> vec3:
    """Compute the radiance arriving along a ray.

    Args:
        ray: The ray to shade (normalized direction).
        depth: Recursion depth of ``ray`` itself (0 for camera rays).
        max_depth: Depth at which specular spheres fall back to diffuse
            shading. Must not exceed MAX_SUPPORTED_DEPTH.

    Returns:
        Linear RGB radiance, unclamped.
    """
    color = vec3(0.0, 0.0, 0.0)

    # Pending rays: origin, direction, accumulated weight, depth
    stack_origin = ti.Matrix.zero(ti.f32, _STACK_SIZE, 3)
    stack_direction = ti.Matrix.zero(ti.f32, _STACK_SIZE, 3)
    stack_weight = ti.Matrix.zero(ti.f32, _STACK_SIZE, 3)
    stack_depth = ti.Vector.zero(ti.i32, _STACK_SIZE)

    for c in ti.static(range(3)):
        stack_origin[0, c] = ray.origin[c]
        stack_direction[0, c] = ray.direction[c]
        stack_weight[0, c] = 1.0
    stack_depth[0] = depth
    top = 1

    while top > 0:
        top -= 1

        # Pop (stack slots are only addressed with static indices)
        origin = vec3(0.0, 0.0, 0.0)
        direction = vec3(0.0, 0.0, 0.0)
        weight = vec3(0.0, 0.0, 0.0)
        node_depth = 0
        for s in ti.static(range(_STACK_SIZE)):
            if s == top:
                origin = vec3(stack_origin[s, 0], stack_origin[s, 1], stack_origin[s, 2])
                direction = vec3(
                    stack_direction[s, 0], stack_direction[s, 1], stack_direction[s, 2]
                )
                weight = vec3(stack_weight[s, 0], stack_weight[s, 1], stack_weight[s, 2])
                node_depth = stack_depth[s]

        _ray_count[None] += 1
        ti.atomic_max(_deepest[None], node_depth)

        node_ray = make_ray(origin, direction)
        nearest = find_nearest(node_ray)

        # Secondary rays spawned by this node
        child_count = 0
        reflect_origin = vec3(0.0, 0.0, 0.0)
        reflect_dir = vec3(0.0, 0.0, 0.0)
        reflect_weight = vec3(0.0, 0.0, 0.0)
        refract_origin = vec3(0.0, 0.0, 0.0)
        refract_dir = vec3(0.0, 0.0, 0.0)
        refract_weight = vec3(0.0, 0.0, 0.0)

        if nearest.hit == 0:
            color += weight * BACKGROUND_LEVEL
        else:
            sphere = load_sphere(nearest.index)
            hit_point = ray_at(node_ray, nearest.t)
            normal = normalized(hit_point - sphere.center)

            # Leaving the sphere: shade the inner side
            inside = 0
            if dot(direction, normal) > 0.0:
                normal = -normal
                inside = 1

            if node_depth < max_depth and (sphere.transparency > 0.0 or sphere.reflection > 0.0):
                facing_ratio = -dot(direction, normal)
                fresnel = mix((1.0 - facing_ratio) ** 3, 1.0, 0.1)

                reflect_origin = hit_point + normal * BIAS
                reflect_dir = normalized(reflect(direction, normal))
                reflect_weight = weight * sphere.surface_color * fresnel
                child_count = 1

                if sphere.transparency > 0.0:
                    eta = 1.0 / IOR
                    if inside == 1:
                        eta = IOR
                    valid, refracted = refract(direction, normal, eta)
                    # Total internal reflection contributes no refracted light
                    if valid == 1:
                        refract_origin = hit_point - normal * BIAS
                        refract_dir = normalized(refracted)
                        refract_weight = (
                            weight * sphere.surface_color * (1.0 - fresnel) * sphere.transparency
                        )
                        child_count = 2

                color += weight * sphere.emission
            else:
                diffuse = _shade_diffuse(hit_point, normal, nearest.index, sphere)
                color += weight * (diffuse + sphere.emission)

        # Push
        for s in ti.static(range(_STACK_SIZE)):
            if child_count >= 1 and s == top:
                for c in ti.static(range(3)):
                    stack_origin[s, c] = reflect_origin[c]
                    stack_direction[s, c] = reflect_dir[c]
                    stack_weight[s, c] = reflect_weight[c]
                stack_depth[s] = node_depth + 1
            if child_count >= 2 and s == top + 1:
                for c in ti.static(range(3)):
                    stack_origin[s, c] = refract_origin[c]
                    stack_direction[s, c] = refract_dir[c]
                    stack_weight[s, c] = refract_weight[c]
                stack_depth[s] = node_depth + 1
        top += child_count

    return color


# =============================================================================
# Single Ray Entry Point
# =============================================================================

_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_probe(depth: ti.i32, max_depth: ti.i32) -> vec3:
    """Trace the ray stored in the probe fields."""
    return trace_ray(make_ray(_probe_origin[None], _probe_direction[None]), depth, max_depth)


def trace(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    scene: "SceneManager",
    depth: int = 0,
) -> tuple[float, float, float]:
    """Trace a single ray through a scene.

    Python-callable counterpart of trace_ray() for tests and debugging. For
    images use render_image(), which shades every pixel in parallel.

    Args:
        origin: Ray origin.
        direction: Ray direction. Must be normalized by the caller.
        scene: The scene to trace against; loaded into the kernel fields.
        depth: Recursion depth to start at (0 for a camera ray).

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        ValueError: If depth is negative.
    """
    if depth < 0:
        raise ValueError(f"Depth must be non-negative, got {depth}")

    scene.load()
    _probe_origin[None] = [origin[0], origin[1], origin[2]]
    _probe_direction[None] = [direction[0], direction[1], direction[2]]
    color = _trace_probe(depth, _max_depth)

    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Row-major color buffer indexed [y, x], row 0 at the top of the image
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target and clear it.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer to zero."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
):
    """Shade every pixel in rows [row_start, row_end).

    Pixels are independent: each writes only its own buffer slot.
    """
    for y, x in ti.ndrange((row_start, row_end), width):
        ray = get_primary_ray(x, y, width, height)
        _color_buffer[y, x] = trace_ray(ray, 0, max_depth)


def render_rows(row_start: int, row_end: int) -> None:
    """Render a band of rows into the current render target.

    The camera and scene must already be set up.

    Args:
        row_start: First row to render (0 = top).
        row_end: One past the last row to render.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the band is outside the image.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row band [{row_start}, {row_end}) for height {height}")

    if row_end > row_start:
        _render_rows(row_start, row_end, width, height, _max_depth)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns:
        Array of shape (height, width, 3), dtype float32, row 0 at the top.
        Values are linear and unclamped; ``.reshape(-1, 3)`` gives the flat
        row-major pixel buffer.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    # Get raw image data (full buffer) and extract the active region
    full_image = _color_buffer.to_numpy()
    image = full_image[:height, :width, :]

    return np.ascontiguousarray(image, dtype=np.float32)


def render_image(
    scene: "SceneManager",
    width: int,
    height: int,
    fov: float = 30.0,
    *,
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> npt.NDArray[np.float32]:
    """Render a whole image of a scene.

    Args:
        scene: The scene to render; loaded into the kernel fields.
        width: Image width in pixels.
        height: Image height in pixels.
        fov: Vertical field of view in degrees.
        origin: Camera position; the camera looks down -Z.

    Returns:
        Array of shape (height, width, 3) of linear, unclamped RGB.

    Raises:
        ValueError: If the size or field of view is invalid.
    """
    scene.load()
    setup_camera(PinholeCamera(fov=fov, origin=origin), width, height)
    setup_render_target(width, height)
    render_rows(0, height)
    return get_image_numpy()
