"""Output module for image quantization and export.

Components:
    export: Gamma, 8-bit quantization, PPM encoding, PPM/PNG writers
"""

from src.whitted.output.export import (
    SUPPORTED_EXTENSIONS,
    apply_gamma,
    encode_ppm,
    image_to_uint8,
    save_image,
    save_png,
    save_ppm,
)

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "apply_gamma",
    "image_to_uint8",
    "encode_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
