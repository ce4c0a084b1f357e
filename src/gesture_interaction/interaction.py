"""Pinch-driven interaction: click-to-select, drag and free rotation.

Each hand side owns a `HandInteractionState`; the selected object is a single
slot shared by both hands. Per frame and per hand, the pinch edge is computed
exactly once (`InteractionEngine.pinch_edge`) and the resulting `PinchEdge`
is read by the click, drag and rotation logic alike.

Click vs drag:
    A click is a pinch that starts and ends over the same object (or over
    empty space, which deselects) within `click_timeout`. Anything else is an
    abandoned click and is ignored. Dragging needs an existing selection and
    an ongoing pinch; the finger does not have to stay over the object, the
    offset captured on the first pinching frame keeps it attached.

Usage:
    engine = InteractionEngine(registry)
    flags = engine.update_hand(frame, snapshot, timestamp=now)
    for evt in engine.drain_events():
        print(evt.kind, evt.object_id)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from gesture_interaction.classifier import PoseSnapshot
from gesture_interaction.config import InteractionConfig, RotationConfig, ViewConfig
from gesture_interaction.landmarks import HandFrame, HandSide, normalized_to_world, pinch_point
from gesture_interaction.scene import ObjectRegistry

logger = logging.getLogger("gesture_interaction.interaction")


@dataclass
class InteractionEvent:
    """A discrete change produced by the interaction core."""
    kind: str  # select, deselect, drag_start, drag_end, rotate_start, ...
    timestamp: float
    side: Optional[HandSide] = None
    object_id: Optional[str] = None
    value: Optional[float] = None


@dataclass(frozen=True)
class PinchEdge:
    """This frame's pinch state compared with the previous frame's."""
    pinching: bool
    started: bool
    ended: bool


@dataclass(frozen=True)
class HandFlags:
    """Per-hand feedback for the rendering layer."""
    pinching: bool = False
    dragging: bool = False
    rotating: bool = False
    touched_id: Optional[str] = None


@dataclass
class HandInteractionState:
    was_pinching: bool = False
    pinch_start_object: Optional[str] = None
    pinch_start_time: Optional[float] = None
    drag_offset: Optional[np.ndarray] = None
    drag_object: Optional[str] = None
    rotation_base_position: Optional[np.ndarray] = None
    rotation_base_rotation: Optional[np.ndarray] = None
    rotation_object: Optional[str] = None
    touched_id: Optional[str] = None

    @property
    def is_dragging(self) -> bool:
        return self.drag_offset is not None

    @property
    def is_rotating(self) -> bool:
        return self.rotation_base_position is not None

    def clear_pinch_start(self):
        self.pinch_start_object = None
        self.pinch_start_time = None

    def clear_drag(self):
        self.drag_offset = None
        self.drag_object = None

    def clear_rotation(self):
        self.rotation_base_position = None
        self.rotation_base_rotation = None
        self.rotation_object = None


def _policy_side(label: Optional[str]) -> Optional[HandSide]:
    if not label:
        return None
    return HandSide.parse(label)


class InteractionEngine:
    """Turns per-hand pinch state into selection and pose changes.

    Which side drags and which side rotates is policy (`drag_side`,
    `rotate_side` in `InteractionConfig`); the state machine itself treats
    both hands alike.
    """

    def __init__(
        self,
        registry: ObjectRegistry,
        config: Optional[InteractionConfig] = None,
        rotation: Optional[RotationConfig] = None,
        view: Optional[ViewConfig] = None,
    ):
        self.registry = registry
        self.config = config or InteractionConfig()
        self.rotation = rotation or RotationConfig()
        self.view = view or ViewConfig()
        self.drag_side = _policy_side(self.config.drag_side)
        self.rotate_side = _policy_side(self.config.rotate_side)

        self._states: dict[HandSide, HandInteractionState] = {
            HandSide.LEFT: HandInteractionState(),
            HandSide.RIGHT: HandInteractionState(),
        }
        self._selected_id: Optional[str] = None
        self._events: list[InteractionEvent] = []

    # --- selection ---

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def select(self, object_id: str, timestamp: Optional[float] = None):
        now = timestamp if timestamp is not None else time.monotonic()
        if object_id == self._selected_id:
            return
        self._selected_id = object_id
        logger.info("Selected %s", object_id)
        self._emit("select", now, object_id=object_id)

    def deselect(self, timestamp: Optional[float] = None):
        now = timestamp if timestamp is not None else time.monotonic()
        if self._selected_id is None:
            return
        previous = self._selected_id
        self._selected_id = None
        logger.info("Deselected %s", previous)
        self._emit("deselect", now, object_id=previous)

    # --- per-hand processing ---

    def state(self, side: HandSide) -> HandInteractionState:
        return self._states[side]

    def to_world(self, point: np.ndarray) -> np.ndarray:
        return normalized_to_world(
            point,
            world_scale=self.view.world_scale,
            invert_x=self.view.invert_x,
            invert_y=self.view.invert_y,
        )

    def pinch_edge(self, side: HandSide, pinching: bool) -> PinchEdge:
        """Compare against the stored pinch flag and store the new one."""
        state = self._states[side]
        edge = PinchEdge(
            pinching=pinching,
            started=pinching and not state.was_pinching,
            ended=state.was_pinching and not pinching,
        )
        state.was_pinching = pinching
        return edge

    def update_hand(
        self,
        frame: HandFrame,
        snapshot: PoseSnapshot,
        timestamp: Optional[float] = None,
        scaling: bool = False,
    ) -> HandFlags:
        """Process one present hand for one frame.

        Args:
            frame: The hand's landmarks and side.
            snapshot: Pose classification of the same frame.
            timestamp: Frame time in seconds (monotonic).
            scaling: True while the two-hand scale mode is active; drag and
                rotation are suspended then.
        """
        now = timestamp if timestamp is not None else time.monotonic()
        side = frame.side
        state = self._states[side]

        edge = self.pinch_edge(side, snapshot.pinch.index.is_pinching)
        pinch_world = self.to_world(pinch_point(frame.landmarks))
        touched = self.registry.query_object_at(pinch_world)
        state.touched_id = touched

        if edge.started:
            state.pinch_start_object = touched
            state.pinch_start_time = now

        if edge.ended:
            self._end_drag(side, state, now)
            self._end_rotation(side, state, now)
            self._resolve_click(side, state, touched, now)
            return self._flags(state, edge)

        if side == self.drag_side:
            self._drag(side, state, edge, pinch_world, now, scaling)

        if side == self.rotate_side:
            palm_world = self.to_world(snapshot.palm.center)
            self._rotate(side, state, edge, palm_world, now, scaling)

        return self._flags(state, edge)

    def release(self, side: HandSide, timestamp: Optional[float] = None):
        """Return an absent hand to neutral. No click is resolved."""
        now = timestamp if timestamp is not None else time.monotonic()
        state = self._states[side]
        self._end_drag(side, state, now)
        self._end_rotation(side, state, now)
        state.was_pinching = False
        state.touched_id = None
        state.clear_pinch_start()

    def hands_lost(self, timestamp: Optional[float] = None):
        """Called when no hand is present at all."""
        if self.config.deselect_on_hands_lost:
            self.deselect(timestamp)

    def flags(self, side: HandSide) -> HandFlags:
        state = self._states[side]
        return HandFlags(
            pinching=state.was_pinching,
            dragging=state.is_dragging,
            rotating=state.is_rotating,
            touched_id=state.touched_id,
        )

    def drain_events(self) -> list[InteractionEvent]:
        events, self._events = self._events, []
        return events

    # --- internals ---

    def _emit(self, kind: str, now: float, side: Optional[HandSide] = None,
              object_id: Optional[str] = None, value: Optional[float] = None):
        self._events.append(InteractionEvent(
            kind=kind, timestamp=now, side=side, object_id=object_id, value=value,
        ))

    def _flags(self, state: HandInteractionState, edge: PinchEdge) -> HandFlags:
        return HandFlags(
            pinching=edge.pinching,
            dragging=state.is_dragging,
            rotating=state.is_rotating,
            touched_id=state.touched_id,
        )

    def _resolve_click(self, side: HandSide, state: HandInteractionState,
                       touched: Optional[str], now: float):
        start_object = state.pinch_start_object
        start_time = state.pinch_start_time
        state.clear_pinch_start()

        if start_time is None:
            return
        elapsed = now - start_time
        if elapsed >= self.config.click_timeout:
            logger.debug("%s pinch too long for a click (%.2fs)", side.value, elapsed)
            return

        if start_object is not None and start_object == touched:
            self.select(start_object, now)
        elif start_object is None and touched is None:
            self.deselect(now)
        else:
            logger.debug(
                "%s click abandoned: started on %s, ended on %s",
                side.value, start_object, touched,
            )

    def _drag(self, side: HandSide, state: HandInteractionState, edge: PinchEdge,
              pinch_world: np.ndarray, now: float, scaling: bool):
        selected = self._selected_id
        if not edge.pinching or selected is None or scaling:
            self._end_drag(side, state, now)
            return

        if state.drag_offset is None or state.drag_object != selected:
            self._end_drag(side, state, now)
            position = self.registry.get_pose(selected).position
            state.drag_offset = pinch_world - position
            state.drag_object = selected
            self._emit("drag_start", now, side=side, object_id=selected)
            return

        self.registry.set_position(selected, pinch_world - state.drag_offset)

    def _end_drag(self, side: HandSide, state: HandInteractionState, now: float):
        if state.is_dragging:
            self._emit("drag_end", now, side=side, object_id=state.drag_object)
        state.clear_drag()

    def _rotate(self, side: HandSide, state: HandInteractionState, edge: PinchEdge,
                palm_world: np.ndarray, now: float, scaling: bool):
        selected = self._selected_id

        if edge.started and selected is not None and not scaling:
            state.rotation_base_position = palm_world
            state.rotation_base_rotation = np.array(
                self.registry.get_pose(selected).rotation, dtype=np.float64
            )
            state.rotation_object = selected
            self._emit("rotate_start", now, side=side, object_id=selected)
            return

        if not state.is_rotating:
            return
        if scaling or selected != state.rotation_object:
            self._end_rotation(side, state, now)
            return

        delta = palm_world - state.rotation_base_position
        dx, dy = float(delta[0]), float(delta[1])
        deadzone = self.rotation.deadzone
        if abs(dx) < deadzone and abs(dy) < deadzone:
            return

        ratio = self.rotation.position_to_angle_ratio
        base = state.rotation_base_rotation
        # horizontal → yaw, vertical → pitch (inverted so pushing up tilts back)
        rotation = np.array([base[0] - dy * ratio, base[1] + dx * ratio, base[2]])
        self.registry.set_rotation(selected, rotation)

    def _end_rotation(self, side: HandSide, state: HandInteractionState, now: float):
        if state.is_rotating:
            self._emit("rotate_end", now, side=side, object_id=state.rotation_object)
        state.clear_rotation()
