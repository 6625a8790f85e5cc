"""Scene module for sphere storage and scene management.

Components:
    intersection: Sphere storage in Taichi fields, nearest-hit search and
        shadow-ray occlusion queries
    manager: Validated Python-side scene with serialization
    default_scene: The classic five-sphere demo scene

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for sphere data
    - Linear scan in scene order (no acceleration structure)
"""

from .default_scene import DefaultSceneParams, create_default_scene
from .intersection import (
    MAX_SPHERES,
    NearestHit,
    add_sphere,
    clear_scene,
    find_nearest,
    get_sphere_count,
    is_occluded,
    load_sphere,
)
from .manager import SceneConfig, SceneManager, SphereInfo

__all__ = [
    # Intersection module
    "NearestHit",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "load_sphere",
    "find_nearest",
    "is_occluded",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "SphereInfo",
    "SceneConfig",
    # Default scene
    "DefaultSceneParams",
    "create_default_scene",
]
