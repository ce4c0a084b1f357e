"""Two-hand gestures: pinch-to-scale on the selected object.

Runs after both hands' single-hand interaction for the frame, so the pinch
booleans it reads are this frame's. Scale mode is entered when both hands
pinch while an object is selected; the inter-palm distance at that moment is
the baseline, and the object's scale follows the distance ratio from then on.

Usage:
    scaler = TwoHandScaler(registry)
    report = scaler.update(left_snapshot, right_snapshot, engine.selected_id, timestamp=now)
    if report.zoom:
        print(f"zoom {report.zoom}: {report.distance:.3f}")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from gesture_interaction.classifier import PoseSnapshot
from gesture_interaction.config import InteractionConfig
from gesture_interaction.interaction import InteractionEvent
from gesture_interaction.scene import ObjectRegistry

logger = logging.getLogger("gesture_interaction.bimanual")

MIN_BASE_DISTANCE = 1e-6


@dataclass(frozen=True)
class TwoHandGestures:
    """What the two hands are doing together this frame."""
    both_present: bool = False
    distance: Optional[float] = None  # palm-center distance in the XY plane
    zoom: Optional[str] = None  # "in" / "out" when the distance moved past the threshold
    scaling: bool = False
    scale: Optional[float] = None  # scale applied this frame, if any


@dataclass
class ScaleState:
    object_id: str
    base_scale: float
    base_distance: float


def palm_distance(left: PoseSnapshot, right: PoseSnapshot) -> float:
    return float(np.linalg.norm(left.palm.center[:2] - right.palm.center[:2]))


class TwoHandScaler:
    """Scales the selected object by the change in distance between the palms."""

    def __init__(self, registry: ObjectRegistry, config: Optional[InteractionConfig] = None):
        self.registry = registry
        self.config = config or InteractionConfig()
        self._state: Optional[ScaleState] = None
        self._last_distance: Optional[float] = None
        self._events: list[InteractionEvent] = []

    @property
    def active(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> Optional[ScaleState]:
        return self._state

    def update(
        self,
        left: Optional[PoseSnapshot],
        right: Optional[PoseSnapshot],
        selected_id: Optional[str],
        timestamp: Optional[float] = None,
    ) -> TwoHandGestures:
        """Feed this frame's snapshots (None for an absent hand)."""
        now = timestamp if timestamp is not None else time.monotonic()

        if left is None or right is None:
            self._last_distance = None
            self._exit(now)
            return TwoHandGestures()

        distance = palm_distance(left, right)
        zoom = self._zoom_direction(distance)

        both_pinching = left.pinch.index.is_pinching and right.pinch.index.is_pinching
        if not both_pinching or selected_id is None:
            self._exit(now)
            return TwoHandGestures(both_present=True, distance=distance, zoom=zoom)

        if self._state is not None and self._state.object_id != selected_id:
            self._exit(now)

        if self._state is None:
            self._enter(selected_id, distance, now)
            return TwoHandGestures(
                both_present=True, distance=distance, zoom=zoom, scaling=self.active,
            )

        scale = self._scale_for(distance)
        self.registry.set_scale(self._state.object_id, scale)
        return TwoHandGestures(
            both_present=True, distance=distance, zoom=zoom, scaling=True, scale=scale,
        )

    def reset(self):
        self._state = None
        self._last_distance = None

    def drain_events(self) -> list[InteractionEvent]:
        events, self._events = self._events, []
        return events

    def _zoom_direction(self, distance: float) -> Optional[str]:
        zoom = None
        if self._last_distance is not None:
            delta = distance - self._last_distance
            if abs(delta) > self.config.zoom_delta_threshold:
                zoom = "out" if delta > 0 else "in"
        self._last_distance = distance
        return zoom

    def _scale_for(self, distance: float) -> float:
        state = self._state
        raw = state.base_scale * (distance / state.base_distance)
        return float(np.clip(raw, self.config.scale_min, self.config.scale_max))

    def _enter(self, object_id: str, distance: float, now: float):
        if distance < MIN_BASE_DISTANCE:
            logger.debug("Palms too close to start scaling %s", object_id)
            return
        base_scale = self.registry.get_pose(object_id).scale
        self._state = ScaleState(
            object_id=object_id, base_scale=base_scale, base_distance=distance,
        )
        logger.debug("Scale mode on %s (base %.2f, distance %.3f)", object_id, base_scale, distance)
        self._events.append(InteractionEvent(
            kind="scale_start", timestamp=now, object_id=object_id, value=base_scale,
        ))

    def _exit(self, now: float):
        if self._state is None:
            return
        object_id = self._state.object_id
        self._state = None
        logger.debug("Scale mode off %s", object_id)
        self._events.append(InteractionEvent(
            kind="scale_end", timestamp=now, object_id=object_id,
            value=self.registry.get_pose(object_id).scale,
        ))
