"""Scene manager: validated sphere bookkeeping on top of the kernel fields.

The kernel-side scene (``scene.intersection``) is a single set of global
Taichi fields. A SceneManager owns a Python-side list of spheres, validates
materials as they are added, and writes them into those fields. Several
managers may exist at once; ``load()`` makes one of them the active kernel
scene again, reloading its spheres if another manager was loaded since.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0, 0, -20), 4.0, (1.0, 0.32, 0.36), reflection=1.0, transparency=0.5)
    0
    >>> scene.add_light((0, 20, -30), 3.0, emission=(3.0, 3.0, 3.0))
    1
"""

import math
from dataclasses import dataclass, field
from typing import Any

from src.whitted.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

Color = tuple[float, float, float]

# Manager whose spheres are currently in the kernel fields
_loaded_scene: "SceneManager | None" = None


def _mark_unloaded() -> None:
    """Forget which manager is loaded (the fields were cleared elsewhere)."""
    global _loaded_scene
    _loaded_scene = None


@dataclass(frozen=True)
class SphereInfo:
    """A sphere as described on the Python side.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (positive).
        surface_color: Diffuse / tint color (RGB, non-negative).
        reflection: Reflectivity in [0, 1].
        transparency: Refraction weight in [0, 1].
        emission: Emitted radiance (RGB, non-negative). The sphere is a
            light source when the first channel is positive.
    """

    center: tuple[float, float, float]
    radius: float
    surface_color: Color
    reflection: float = 0.0
    transparency: float = 0.0
    emission: Color = (0.0, 0.0, 0.0)

    @property
    def sqr_radius(self) -> float:
        """The squared radius, derived from radius."""
        return self.radius * self.radius

    @property
    def is_light(self) -> bool:
        """Whether the sphere acts as a light source (emission.x > 0)."""
        return self.emission[0] > 0.0


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        spheres: List of sphere configurations (dicts with the SphereInfo
            field names; lists are accepted for vectors).
    """

    spheres: list[dict[str, Any]] = field(default_factory=list)


def _to_float(name: str, value: Any) -> float:
    """Convert a numeric value, raising ValueError for anything else."""
    if isinstance(value, (str, bytes)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


def _to_vector(name: str, value: Any) -> tuple[float, float, float]:
    """Convert a 3-component sequence to a tuple of floats."""
    if isinstance(value, (str, bytes)):
        raise ValueError(f"{name} must have 3 components, got {value!r}")
    try:
        components = list(value)
    except TypeError as e:
        raise ValueError(f"{name} must have 3 components, got {value!r}") from e
    if len(components) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(components)}")
    return (
        _to_float(f"{name} component 0", components[0]),
        _to_float(f"{name} component 1", components[1]),
        _to_float(f"{name} component 2", components[2]),
    )


def _validate_color(name: str, color: Color) -> Color:
    """Check an RGB triple and return it as a tuple of floats."""
    result = _to_vector(name, color)
    for i, component in enumerate(result):
        if not math.isfinite(component) or component < 0.0:
            raise ValueError(f"{name} component {i} = {component} must be finite and non-negative.")
    return result


def _validate_unit(name: str, value: float) -> float:
    """Check a scalar material weight lies in [0, 1]."""
    result = _to_float(name, value)
    if not 0.0 <= result <= 1.0:
        raise ValueError(f"{name} = {value} is outside [0, 1].")
    return result


def _make_sphere_info(
    center: tuple[float, float, float],
    radius: float,
    surface_color: Color,
    reflection: float = 0.0,
    transparency: float = 0.0,
    emission: Color = (0.0, 0.0, 0.0),
) -> SphereInfo:
    """Validate sphere parameters and build a SphereInfo.

    Raises:
        ValueError: If any value has the wrong type or is out of range.
    """
    radius_value = _to_float("Radius", radius)
    if not math.isfinite(radius_value) or radius_value <= 0.0:
        raise ValueError(f"Radius = {radius} must be positive.")

    return SphereInfo(
        center=_to_vector("Center", center),
        radius=radius_value,
        surface_color=_validate_color("Surface color", surface_color),
        reflection=_validate_unit("Reflection", reflection),
        transparency=_validate_unit("Transparency", transparency),
        emission=_validate_color("Emission", emission),
    )


class SceneManager:
    """Validated scene of spheres.

    Attributes:
        spheres: List of SphereInfo for all spheres, in scene order. Order
            decides the winner when two spheres are hit at exactly the same
            distance.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_sphere((0, -10004, -20), 10000, (0.2, 0.2, 0.2))
        >>> mirror = scene.add_sphere((5, -1, -15), 2, (0.9, 0.76, 0.46), reflection=1.0)
        >>> light = scene.add_light((0, 20, -30), 3, emission=(3, 3, 3))
    """

    def __init__(self) -> None:
        """Initialize an empty scene and make it the active one."""
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear local tracking and the kernel fields."""
        global _loaded_scene
        self.spheres.clear()
        clear_scene()
        _loaded_scene = self

    def clear(self) -> None:
        """Remove every sphere. The scene becomes the active one."""
        self._clear_all()

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        surface_color: Color,
        reflection: float = 0.0,
        transparency: float = 0.0,
        emission: Color = (0.0, 0.0, 0.0),
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            surface_color: Diffuse / tint color as (R, G, B).
            reflection: Reflectivity in [0, 1].
            transparency: Refraction weight in [0, 1].
            emission: Emitted radiance as (R, G, B).

        Returns:
            The scene index of the new sphere.

        Raises:
            ValueError: If radius is not positive or a material value is out
                of range.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        info = _make_sphere_info(
            center,
            radius,
            surface_color,
            reflection=reflection,
            transparency=transparency,
            emission=emission,
        )
        if len(self.spheres) >= MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        # Keep the kernel fields in step when this scene is the active one
        self.load()
        index = add_sphere(
            info.center,
            info.radius,
            info.surface_color,
            emission=info.emission,
            transparency=info.transparency,
            reflection=info.reflection,
        )
        self.spheres.append(info)
        return index

    def add_light(
        self,
        center: tuple[float, float, float],
        radius: float,
        emission: Color,
        surface_color: Color = (0.0, 0.0, 0.0),
    ) -> int:
        """Add an emissive sphere.

        Args:
            center: The center point of the light as (x, y, z).
            radius: The radius of the light sphere.
            emission: Emitted radiance as (R, G, B). The first channel must be
                positive for the sphere to light other surfaces.
            surface_color: Surface color of the light itself (default black).

        Returns:
            The scene index of the light sphere.

        Raises:
            ValueError: If emission.x is not positive or any value is invalid.
        """
        if len(emission) != 3 or emission[0] <= 0.0:
            raise ValueError(
                f"Light emission {emission} must have a positive first channel."
            )
        return self.add_sphere(center, radius, surface_color, emission=emission)

    def load(self) -> None:
        """Make this scene the one kernels trace against.

        Does nothing when the scene is already loaded; otherwise rewrites the
        kernel fields with this scene's spheres.
        """
        global _loaded_scene
        if _loaded_scene is self:
            return
        clear_scene()
        for info in self.spheres:
            add_sphere(
                info.center,
                info.radius,
                info.surface_color,
                emission=info.emission,
                transparency=info.transparency,
                reflection=info.reflection,
            )
        _loaded_scene = self

    @property
    def is_loaded(self) -> bool:
        """Whether this scene's spheres are currently in the kernel fields."""
        return _loaded_scene is self

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return len(self.spheres)

    def get_light_count(self) -> int:
        """Get the number of spheres acting as light sources."""
        return sum(1 for info in self.spheres if info.is_light)

    def get_loaded_sphere_count(self) -> int:
        """Get the number of spheres in the kernel fields."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()
        for info in self.spheres:
            config.spheres.append(
                {
                    "center": list(info.center),
                    "radius": info.radius,
                    "surface_color": list(info.surface_color),
                    "reflection": info.reflection,
                    "transparency": info.transparency,
                    "emission": list(info.emission),
                }
            )
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Every entry is validated before the current scene is replaced, so an
        invalid configuration leaves the scene unchanged.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
            RuntimeError: If the configuration exceeds MAX_SPHERES.
        """
        infos: list[SphereInfo] = []
        for i, sphere_config in enumerate(config.spheres):
            if not isinstance(sphere_config, dict):
                raise ValueError(f"Sphere {i} must be a mapping, got {sphere_config!r}")
            if "center" not in sphere_config or "radius" not in sphere_config:
                raise ValueError(f"Sphere {i} needs 'center' and 'radius'")
            try:
                infos.append(
                    _make_sphere_info(
                        sphere_config["center"],
                        sphere_config["radius"],
                        sphere_config.get("surface_color", [0.0, 0.0, 0.0]),
                        reflection=sphere_config.get("reflection", 0.0),
                        transparency=sphere_config.get("transparency", 0.0),
                        emission=sphere_config.get("emission", [0.0, 0.0, 0.0]),
                    )
                )
            except ValueError as e:
                raise ValueError(f"Sphere {i}: {e}") from e
        if len(infos) > MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        self.clear()
        for info in infos:
            add_sphere(
                info.center,
                info.radius,
                info.surface_color,
                emission=info.emission,
                transparency=info.transparency,
                reflection=info.reflection,
            )
            self.spheres.append(info)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {"spheres": self.to_config().spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with a 'spheres' key."""
        if not isinstance(data, dict):
            raise ValueError(f"Scene data must be a mapping, got {type(data).__name__}")
        if not isinstance(data.get("spheres", []), list):
            raise ValueError("'spheres' must be a list")
        self.from_config(SceneConfig(spheres=data.get("spheres", [])))

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    def __repr__(self) -> str:
        """Return a string representation of the scene."""
        return (
            f"SceneManager(spheres={self.get_sphere_count()}, "
            f"lights={self.get_light_count()})"
        )
