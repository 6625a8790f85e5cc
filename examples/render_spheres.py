#!/usr/bin/env python3
"""Render the default sphere scene (or a scene loaded from JSON).

This script demonstrates end-to-end rendering with the Whitted tracer. It
builds the scene, sets the recursion limit, renders in bands of rows with a
progress line, and writes a PPM or PNG depending on the output extension.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH         Image width in pixels (default: 640)
    --height HEIGHT       Image height in pixels (default: 480)
    --fov FOV             Vertical field of view in degrees (default: 30)
    --max-depth DEPTH     Reflection/refraction recursion limit (default: 5)
    --batch-rows ROWS     Rows per progress update (default: 32)
    --scene FILE          JSON scene ({"spheres": [...]}) instead of the default
    --output OUTPUT       Output file path, .ppm or .png (default: raytraced.ppm)
    --gamma GAMMA         Gamma applied before quantization (default: 1.0)
    --quiet               Suppress progress output

Example:
    python -m examples.render_spheres --width 320 --height 240 --output spheres.png
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of spheres with the Whitted tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=480,
        help="Image height in pixels (default: 480)",
    )
    parser.add_argument(
        "--fov",
        type=float,
        default=30.0,
        help="Vertical field of view in degrees (default: 30)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=5,
        help="Reflection/refraction recursion limit (default: 5)",
    )
    parser.add_argument(
        "--batch-rows",
        type=int,
        default=32,
        help="Rows per progress update (default: 32)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in demo scene)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="raytraced.ppm",
        help="Output file path, .ppm or .png (default: raytraced.ppm)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Gamma applied before quantization (default: 1.0)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_spheres(
    width: int = 640,
    height: int = 480,
    fov: float = 30.0,
    max_depth: int = 5,
    batch_rows: int = 32,
    scene_path: str | None = None,
    output_path: str = "raytraced.ppm",
    gamma: float = 1.0,
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        fov: Vertical field of view in degrees.
        max_depth: Reflection/refraction recursion limit.
        batch_rows: Number of rows to render between progress updates.
        scene_path: Optional JSON scene file; the demo scene is used if None.
        output_path: Output file path (.ppm or .png).
        gamma: Gamma applied before 8-bit quantization.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.

    Raises:
        ValueError: If the output extension is unsupported (checked before
            rendering) or the scene or camera settings are invalid.
    """
    # Lazy imports to allow Taichi initialization first
    from src.whitted.camera.pinhole import PinholeCamera
    from src.whitted.core.renderer import Renderer
    from src.whitted.core.tracer import set_max_depth
    from src.whitted.output.export import SUPPORTED_EXTENSIONS
    from src.whitted.scene.default_scene import DefaultSceneParams, create_default_scene
    from src.whitted.scene.manager import SceneManager

    output_file = Path(output_path)
    if output_file.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported image format '{output_file.suffix}'; "
            f"expected one of {SUPPORTED_EXTENSIONS}"
        )

    if scene_path is None:
        if not quiet:
            print(f"Creating default scene ({width}x{height})...")
        scene, camera = create_default_scene(DefaultSceneParams(fov=fov))
    else:
        if not quiet:
            print(f"Loading scene from {scene_path} ({width}x{height})...")
        scene = SceneManager()
        scene.from_dict(json.loads(Path(scene_path).read_text()))
        camera = PinholeCamera(fov=fov)

    set_max_depth(max_depth)
    renderer = Renderer(width, height, camera)

    if not quiet:
        print(f"Rendering {scene!r} with max depth {max_depth}...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            rows_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} rows "
                f"({progress_pct:.1f}%) - {rows_per_sec:.1f} rows/s",
                end="",
                flush=True,
            )

    renderer.render(scene, batch_rows=batch_rows, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    renderer.save_image(str(output_file), gamma=gamma)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            fov=args.fov,
            max_depth=args.max_depth,
            batch_rows=args.batch_rows,
            scene_path=args.scene,
            output_path=args.output,
            gamma=args.gamma,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
