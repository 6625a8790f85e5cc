"""Banded renderer with progress reporting.

This module wraps the tracer's render target in a class that renders an image
in bands of rows, so callers can report progress between kernel launches:

- Batch rendering (several rows per launch)
- Progress callbacks for UI updates
- Generator-based iteration for cooperative loops

Bands cover disjoint rows, so the finished image is identical to a single
render_image() call.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.renderer import Renderer
    >>> from src.whitted.scene.default_scene import create_default_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> renderer = Renderer(640, 480, camera)
    >>> renderer.render(scene, batch_rows=48)
    >>> image = renderer.get_image_numpy()
"""

from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from src.whitted.camera.pinhole import PinholeCamera, setup_camera
from src.whitted.core.tracer import (
    clear_render_target,
    get_image_dimensions,
    get_image_numpy,
    render_rows,
    setup_render_target,
)
from src.whitted.output.export import image_to_uint8, save_image
from src.whitted.scene.manager import SceneManager

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """Render a scene into the shared render target, band by band.

    The renderer keeps its own width/height/camera and delegates to the
    global tracer buffers (which are Taichi fields), so only one image is
    held at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        camera: The camera used for primary rays.
    """

    def __init__(self, width: int, height: int, camera: PinholeCamera | None = None) -> None:
        """Initialize the renderer and its render target.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            camera: Camera configuration; defaults to PinholeCamera().

        Raises:
            ValueError: If dimensions are out of range or the FOV is invalid.
        """
        self._width = width
        self._height = height
        self._camera = camera if camera is not None else PinholeCamera()
        self._rows_done = 0
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def camera(self) -> PinholeCamera:
        """Get the camera configuration."""
        return self._camera

    @property
    def rows_done(self) -> int:
        """Get the number of rows rendered since the last reset."""
        return self._rows_done

    @property
    def is_complete(self) -> bool:
        """Whether every row has been rendered."""
        return self._rows_done >= self._height

    def reset(self) -> None:
        """Clear the image so the next render starts from the top row."""
        self._rows_done = 0
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset.

        Args:
            width: New image width in pixels.
            height: New image height in pixels.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self._width = width
        self._height = height
        self._rows_done = 0
        setup_render_target(width, height)

    def _prepare(self, scene: SceneManager) -> None:
        """Load the scene and camera, and make sure the target has our size."""
        scene.load()
        setup_camera(self._camera, self._width, self._height)
        setup_render_target(self._width, self._height)
        self._rows_done = 0

    def render(
        self,
        scene: SceneManager,
        batch_rows: int = 0,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.float32]:
        """Render the full image.

        Args:
            scene: The scene to render.
            batch_rows: Rows per kernel launch. 0 renders all rows at once.
            callback: Optional callback called after each band.
                Receives (rows_done, total_rows).

        Returns:
            The rendered image, shape (height, width, 3), linear RGB.

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} rows")
            >>> image = renderer.render(scene, batch_rows=32, callback=progress)
        """
        for rows_done, total_rows in self.render_progressive(scene, batch_rows):
            if callback is not None:
                callback(rows_done, total_rows)
        return self.get_image_numpy()

    def render_progressive(
        self,
        scene: SceneManager,
        batch_rows: int = 0,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image band by band, yielding progress after each band.

        Args:
            scene: The scene to render.
            batch_rows: Rows per kernel launch. 0 renders all rows at once.

        Yields:
            Tuple of (rows_done, total_rows).

        Raises:
            ValueError: If batch_rows is negative.
        """
        if batch_rows < 0:
            raise ValueError(f"batch_rows must be non-negative, got {batch_rows}")

        self._prepare(scene)
        band = batch_rows if batch_rows > 0 else self._height

        while self._rows_done < self._height:
            row_end = min(self._rows_done + band, self._height)
            render_rows(self._rows_done, row_end)
            self._rows_done = row_end
            yield (self._rows_done, self._height)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the rendered image as a linear float32 array (height, width, 3).

        Raises:
            RuntimeError: If the shared render target was resized by another
                render (e.g. render_image() at a different size) since this
                renderer last used it.
        """
        width, height = get_image_dimensions()
        if (width, height) != (self._width, self._height):
            raise RuntimeError(
                f"Render target is {width}x{height}, expected "
                f"{self._width}x{self._height}; render again to refresh it"
            )
        return get_image_numpy()

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image quantized to 8 bits per channel.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear, as the
                original PPM output).
        """
        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = 1.0) -> None:
        """Save the rendered image (.ppm or .png, chosen by extension)."""
        save_image(self.get_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"fov={self.camera.fov}, rows_done={self.rows_done})"
        )
