"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole (perspective) camera looking down -Z

Ray generation maps pixel (x, y), row 0 at the top, through the pixel
center onto an image plane at unit distance.
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_primary_ray,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "get_primary_ray",
    "get_camera_info",
]
