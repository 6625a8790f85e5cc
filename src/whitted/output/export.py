"""Image export utilities for rendered images.

The tracer produces linear, unclamped RGB. This module quantizes it to 8 bits
per channel and writes it out.

Supported formats:
    - PPM (binary P6, the original output format)
    - PNG (8-bit via Pillow)

Quantization maps each channel through ``min(1, max(0, v)) * 255`` and
truncates, after an optional gamma encoding.

Example:
    >>> from src.whitted.output.export import save_image
    >>> from src.whitted.core.tracer import render_image
    >>>
    >>> image = render_image(scene, 640, 480)
    >>> save_image(image, "raytraced.ppm")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

SUPPORTED_EXTENSIONS = (".ppm", ".png")


def _check_image(image: npt.NDArray[np.floating]) -> None:
    """Raise unless image has shape (H, W, 3)."""
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Image must have shape (H, W, 3), got {image.shape}")


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Apply gamma encoding for display.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (2.2 for sRGB-like output, 1.0 for none).

    Returns:
        Gamma encoded image, clamped to [0, 1]. With gamma 1.0 the input is
        returned unchanged.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    # Apply gamma encoding: out = in^(1/gamma)
    result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8.

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        gamma: Gamma correction value (default 1.0, no correction).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the image shape is not (H, W, 3).
    """
    _check_image(image)

    processed = apply_gamma(image, gamma)

    # NaN maps to black, +inf saturates
    processed = np.nan_to_num(processed, nan=0.0, posinf=1.0, neginf=0.0)
    processed = np.clip(processed, 0.0, 1.0)

    return (processed * 255).astype(np.uint8)


def encode_ppm(image_uint8: npt.NDArray[np.uint8]) -> bytes:
    """Encode an 8-bit RGB image as binary PPM (P6).

    Args:
        image_uint8: Array of shape (H, W, 3), dtype uint8, row 0 at the top.

    Returns:
        The header ``P6\\n<width> <height>\\n255\\n`` followed by raw RGB
        bytes in row-major order.
    """
    _check_image(image_uint8)
    if image_uint8.dtype != np.uint8:
        raise ValueError(f"PPM encoding needs uint8 data, got {image_uint8.dtype}")

    height, width = image_uint8.shape[:2]
    header = f"P6\n{width} {height}\n255\n".encode("ascii")
    return header + np.ascontiguousarray(image_uint8).tobytes()


def save_ppm(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 1.0,
) -> None:
    """Save a linear float image as a binary PPM file."""
    Path(filepath).write_bytes(encode_ppm(image_to_uint8(image, gamma=gamma)))


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 1.0,
) -> None:
    """Save a linear float image as an 8-bit PNG file via Pillow."""
    image_uint8 = image_to_uint8(image, gamma=gamma)
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(str(filepath))


def save_image(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 1.0,
) -> None:
    """Save an image, choosing the format from the file extension.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output path ending in .ppm or .png.
        gamma: Gamma correction value (default 1.0).

    Raises:
        ValueError: If the extension is not supported.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(image, filepath, gamma=gamma)
    elif suffix == ".png":
        save_png(image, filepath, gamma=gamma)
    else:
        raise ValueError(
            f"Unsupported image format '{suffix}'; expected one of {SUPPORTED_EXTENSIONS}"
        )
