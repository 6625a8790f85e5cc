"""Default demo scene: four spheres over a huge ground sphere, lit by one light.

The layout is the classic Whitted test scene:

- A very large grey sphere acting as the ground plane
- A red sphere that is both reflective and half transparent
- Three reflective spheres (yellow, blue, white)
- An emissive sphere above and behind the group acting as the light

All spheres sit in front of a camera at the origin looking down -Z, with the
default 30 degree field of view.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene.default_scene import create_default_scene
    >>> from src.whitted.core.tracer import render_image
    >>>
    >>> scene, camera = create_default_scene()
    >>> image = render_image(scene, 640, 480, fov=camera.fov)
"""

from dataclasses import dataclass

from src.whitted.camera.pinhole import PinholeCamera
from src.whitted.scene.manager import SceneManager


@dataclass
class DefaultSceneParams:
    """Parameters for customizing the default scene.

    Attributes:
        light_intensity: Emission of the light sphere, per channel.
        light_color: RGB tint of the light (the first channel must stay
            positive, or the sphere no longer lights the scene).
        fov: Camera field of view in degrees.
    """

    light_intensity: float = 3.0
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    fov: float = 30.0


# Ground: a sphere large enough to look flat from the camera
GROUND_CENTER = (0.0, -10004.0, -20.0)
GROUND_RADIUS = 10000.0
GROUND_COLOR = (0.20, 0.20, 0.20)

LIGHT_CENTER = (0.0, 20.0, -30.0)
LIGHT_RADIUS = 3.0


def create_default_scene(
    params: DefaultSceneParams | None = None,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the default demo scene.

    Args:
        params: Optional DefaultSceneParams for the light and camera. If None,
            uses default DefaultSceneParams().

    Returns:
        A tuple of (SceneManager, PinholeCamera). The scene is loaded into
        the kernel fields.
    """
    if params is None:
        params = DefaultSceneParams()

    scene = SceneManager()

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_COLOR)
    scene.add_sphere((0.0, 0.0, -20.0), 4.0, (1.00, 0.32, 0.36), reflection=1.0, transparency=0.5)
    scene.add_sphere((5.0, -1.0, -15.0), 2.0, (0.90, 0.76, 0.46), reflection=1.0)
    scene.add_sphere((5.0, 0.0, -25.0), 3.0, (0.65, 0.77, 0.97), reflection=1.0)
    scene.add_sphere((-5.5, 0.0, -15.0), 3.0, (0.90, 0.90, 0.90), reflection=1.0)

    emission = (
        params.light_color[0] * params.light_intensity,
        params.light_color[1] * params.light_intensity,
        params.light_color[2] * params.light_intensity,
    )
    scene.add_light(LIGHT_CENTER, LIGHT_RADIUS, emission=emission)

    camera = PinholeCamera(fov=params.fov)
    return scene, camera
