"""Pinhole camera model for perspective projection ray generation.

The camera sits at ``origin`` looking down the -Z axis with +Y up. The image
plane is at unit distance; its half-height is ``tan(fov / 2)`` and its
half-width is that times the aspect ratio. Pixel (x, y) maps to

    xx = (2 * ((x + 0.5) / width) - 1) * angle * aspect
    yy = (1 - 2 * ((y + 0.5) / height)) * angle
    direction = normalized(vec3(xx, yy, -1))

so row 0 is the top of the image and rays go through pixel centers.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.camera.pinhole import PinholeCamera, get_primary_ray, setup_camera
    >>>
    >>> camera = PinholeCamera(fov=30.0)
    >>> setup_camera(camera, 640, 480)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_primary_ray(320, 240, 640, 480)
"""

import math
from dataclasses import dataclass

import taichi as ti

from src.whitted.core.ray import Ray, make_ray
from src.whitted.core.vector import normalized, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        fov: Vertical field of view in degrees, in (0, 180). The original
            demo scene uses 30.
        origin: Camera position in world space (x, y, z).
    """

    fov: float = 30.0
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# tan(fov / 2): half-height of the image plane at unit distance
_camera_angle = ti.field(dtype=ti.f32, shape=())

# Image width / height
_camera_aspect = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: PinholeCamera, width: int, height: int) -> None:
    """Initialize camera state for an image size.

    Args:
        camera: Camera configuration with position and FOV.
        width: Image width in pixels.
        height: Image height in pixels.

    Raises:
        ValueError: If the FOV is outside (0, 180) or the size is not positive.
    """
    if not 0.0 < camera.fov < 180.0:
        raise ValueError(f"Field of view must be in (0, 180) degrees, got {camera.fov}")
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    _camera_origin[None] = [camera.origin[0], camera.origin[1], camera.origin[2]]
    _camera_angle[None] = math.tan(math.pi * 0.5 * camera.fov / 180.0)
    _camera_aspect[None] = width / height


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_primary_ray(x: ti.i32, y: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the camera ray through the center of pixel (x, y).

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the camera origin with a normalized direction.
    """
    inv_width = 1.0 / ti.cast(width, ti.f32)
    inv_height = 1.0 / ti.cast(height, ti.f32)
    angle = _camera_angle[None]

    xx = (2.0 * ((ti.cast(x, ti.f32) + 0.5) * inv_width) - 1.0) * angle * _camera_aspect[None]
    yy = (1.0 - 2.0 * ((ti.cast(y, ti.f32) + 0.5) * inv_height)) * angle
    direction = normalized(vec3(xx, yy, -1.0))

    return make_ray(_camera_origin[None], direction)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, float | tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, angle (tan of the half FOV) and aspect.
    """
    origin_vec = _camera_origin[None]
    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "angle": float(_camera_angle[None]),
        "aspect": float(_camera_aspect[None]),
    }
