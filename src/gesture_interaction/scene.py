"""Object registry: the capability the interaction core uses to touch the scene.

The core never owns scene objects. It reads and writes their pose through the
`ObjectRegistry` protocol, so a renderer can back it with real meshes.
`SceneRegistry` is an in-memory implementation with box hit-testing, used by
the CLI replay and by tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

import numpy as np


@dataclass
class ObjectPose:
    """Position, Euler rotation (radians) and uniform scale of one object."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    scale: float = 1.0

    def copy(self) -> ObjectPose:
        return ObjectPose(
            position=np.array(self.position, dtype=np.float64),
            rotation=np.array(self.rotation, dtype=np.float64),
            scale=float(self.scale),
        )


class ObjectRegistry(Protocol):
    def object_ids(self) -> list[str]: ...

    def query_object_at(self, point: np.ndarray) -> Optional[str]: ...

    def get_pose(self, object_id: str) -> ObjectPose: ...

    def get_initial_pose(self, object_id: str) -> ObjectPose: ...

    def set_position(self, object_id: str, position: np.ndarray): ...

    def set_rotation(self, object_id: str, rotation: np.ndarray): ...

    def set_scale(self, object_id: str, scale: float): ...


@dataclass
class SceneObject:
    """An object with a live pose, the pose it started with, and a hit box."""
    id: str
    pose: ObjectPose
    initial: ObjectPose
    half_extents: np.ndarray  # (w/2, h/2) in world units at scale 1

    def contains(self, point: np.ndarray) -> bool:
        """Axis-aligned box test in the XY plane, scaled with the object."""
        half = self.half_extents * self.pose.scale
        offset = np.abs(np.asarray(point[:2], dtype=np.float64) - self.pose.position[:2])
        return bool(np.all(offset <= half))


# Layout on a 1920x1080 design canvas: (x, y, width, height), top-left origin.
DEFAULT_LAYOUT: dict[str, tuple[float, float, float, float]] = {
    "v": (412, 506, 175, 143),
    "b": (605, 454, 157, 197),
    "o": (771, 506, 149, 145),
    "t": (924, 454, 92, 197),
    "flower": (1047, 431, 226, 219),
    "bot": (1297, 435, 211, 216),
}

DESIGN_WIDTH = 1920
DESIGN_HEIGHT = 1080
WORLD_WIDTH = 10.0


def design_to_world(
    x: float, y: float, width: float, height: float
) -> tuple[np.ndarray, np.ndarray]:
    """Convert a design-canvas box to (world center, world half extents).

    The design origin is the top-left corner with Y down; the world origin is
    the canvas center with Y up.
    """
    world_height = WORLD_WIDTH * DESIGN_HEIGHT / DESIGN_WIDTH
    cx = x + width / 2
    cy = y + height / 2
    wx = (cx - DESIGN_WIDTH / 2) / DESIGN_WIDTH * WORLD_WIDTH
    wy = (DESIGN_HEIGHT / 2 - cy) / DESIGN_HEIGHT * world_height
    center = np.array([round(wx, 2), round(wy, 2), 0.0])
    half = np.array([
        width / DESIGN_WIDTH * WORLD_WIDTH / 2,
        height / DESIGN_HEIGHT * world_height / 2,
    ])
    return center, half


class SceneRegistry:
    """In-memory object registry.

    Hit-testing returns the first object (in insertion order) whose box
    contains the point.
    """

    def __init__(self, objects: Iterable[SceneObject] = ()):
        self._objects: dict[str, SceneObject] = {}
        for obj in objects:
            self._objects[obj.id] = obj

    def add(
        self,
        object_id: str,
        position: Iterable[float] = (0.0, 0.0, 0.0),
        half_extents: Iterable[float] = (0.5, 0.5),
        rotation: Iterable[float] = (0.0, 0.0, 0.0),
        scale: float = 1.0,
    ) -> SceneObject:
        """Register an object; its current pose is recorded as the initial pose."""
        pose = ObjectPose(
            position=np.array(list(position), dtype=np.float64),
            rotation=np.array(list(rotation), dtype=np.float64),
            scale=float(scale),
        )
        obj = SceneObject(
            id=object_id,
            pose=pose,
            initial=pose.copy(),
            half_extents=np.array(list(half_extents), dtype=np.float64),
        )
        self._objects[object_id] = obj
        return obj

    def object_ids(self) -> list[str]:
        return list(self._objects)

    def query_object_at(self, point: np.ndarray) -> Optional[str]:
        for obj in self._objects.values():
            if obj.contains(point):
                return obj.id
        return None

    def get_pose(self, object_id: str) -> ObjectPose:
        return self._objects[object_id].pose.copy()

    def get_initial_pose(self, object_id: str) -> ObjectPose:
        return self._objects[object_id].initial.copy()

    def set_position(self, object_id: str, position: np.ndarray):
        self._objects[object_id].pose.position = np.array(position, dtype=np.float64)

    def set_rotation(self, object_id: str, rotation: np.ndarray):
        self._objects[object_id].pose.rotation = np.array(rotation, dtype=np.float64)

    def set_scale(self, object_id: str, scale: float):
        self._objects[object_id].pose.scale = float(scale)

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: str) -> bool:
        return object_id in self._objects

    @classmethod
    def with_defaults(cls) -> SceneRegistry:
        """Scene with the six built-in objects laid out across the screen center."""
        registry = cls()
        for object_id, (x, y, w, h) in DEFAULT_LAYOUT.items():
            center, half = design_to_world(x, y, w, h)
            registry.add(object_id, position=center, half_extents=half)
        return registry
