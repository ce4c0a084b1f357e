"""Static pose classification: one hand frame in, one immutable snapshot out.

Everything here is a pure function of a single frame. Cross-frame behaviour
(waving, pinch edges) lives in `dynamics` and `interaction`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from gesture_interaction.config import PoseConfig
from gesture_interaction.landmarks import (
    FINGER_TIPS,
    THUMB_TIP,
    WRIST,
    HandFrame,
    HandSide,
    distance,
    is_finger_extended,
    is_thumb_extended,
    palm_center,
    palm_normal,
    palm_size,
)

# Priority order matters: the first pinching finger wins.
PINCH_FINGERS = ("index", "middle", "ring", "pinky")

# Order used to pick a single display name out of the gesture flags.
PRIMARY_GESTURE_ORDER = (
    "pointing",
    "victory",
    "ok",
    "thumbs_up",
    "thumbs_down",
    "call_me",
    "rock_on",
    "open_palm",
    "fist",
)


class PalmDirection(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    CAMERA = "camera"
    AWAY = "away"


@dataclass(frozen=True)
class FingerStates:
    thumb: bool
    index: bool
    middle: bool
    ring: bool
    pinky: bool

    @property
    def extended_count(self) -> int:
        return sum((self.thumb, self.index, self.middle, self.ring, self.pinky))


@dataclass(frozen=True)
class PinchState:
    distance: float
    is_pinching: bool


@dataclass(frozen=True)
class PinchStates:
    index: PinchState
    middle: PinchState
    ring: PinchState
    pinky: PinchState
    threshold: float

    @property
    def is_pinching(self) -> bool:
        return self.pinching_finger is not None

    @property
    def pinching_finger(self) -> Optional[str]:
        for finger in PINCH_FINGERS:
            if getattr(self, finger).is_pinching:
                return finger
        return None

    @property
    def thumb_index_distance(self) -> float:
        return self.index.distance


@dataclass(frozen=True)
class NamedGestures:
    pointing: bool = False
    victory: bool = False
    thumbs_up: bool = False
    thumbs_down: bool = False
    ok: bool = False
    call_me: bool = False
    rock_on: bool = False
    open_palm: bool = False
    fist: bool = False


@dataclass(frozen=True)
class PalmInfo:
    center: np.ndarray
    normal: np.ndarray
    direction: PalmDirection
    facing_up: bool
    facing_down: bool
    facing_camera: bool


@dataclass(frozen=True)
class PoseSnapshot:
    """Per-hand, per-frame classification result."""
    side: HandSide
    fingers: FingerStates
    pinch: PinchStates
    gestures: NamedGestures
    palm: PalmInfo

    @property
    def primary_gesture(self) -> Optional[str]:
        for name in PRIMARY_GESTURE_ORDER:
            if getattr(self.gestures, name):
                return name
        return None


def palm_direction(normal: np.ndarray) -> PalmDirection:
    """Discretize a palm normal by its dominant axis.

    Exact ties between axes are not broken deliberately: the z test runs
    first, then x, and anything else falls through to the y axis.
    """
    ax, ay, az = (abs(float(v)) for v in normal)
    if az > ax and az > ay:
        return PalmDirection.CAMERA if normal[2] > 0 else PalmDirection.AWAY
    if ax > ay and ax > az:
        return PalmDirection.RIGHT if normal[0] > 0 else PalmDirection.LEFT
    return PalmDirection.DOWN if normal[1] > 0 else PalmDirection.UP


class PoseClassifier:
    """Classifies finger extension, pinches, named poses and palm orientation."""

    def __init__(self, config: Optional[PoseConfig] = None):
        self.config = config or PoseConfig()

    def classify(self, frame: HandFrame) -> PoseSnapshot:
        landmarks = frame.landmarks
        fingers = self.finger_states(landmarks)
        pinch = self.pinch_states(landmarks)
        gestures = self.named_gestures(landmarks, fingers)
        palm = self.palm_info(landmarks, frame.side)
        return PoseSnapshot(
            side=frame.side,
            fingers=fingers,
            pinch=pinch,
            gestures=gestures,
            palm=palm,
        )

    def finger_states(self, landmarks: np.ndarray) -> FingerStates:
        ratio = self.config.finger_extended_ratio
        return FingerStates(
            thumb=is_thumb_extended(landmarks, self.config.thumb_extended_factor),
            index=is_finger_extended(landmarks, "index", ratio),
            middle=is_finger_extended(landmarks, "middle", ratio),
            ring=is_finger_extended(landmarks, "ring", ratio),
            pinky=is_finger_extended(landmarks, "pinky", ratio),
        )

    def pinch_threshold(self, landmarks: np.ndarray) -> float:
        """Fixed threshold, or one scaled by palm size when adaptive pinch is on."""
        cfg = self.config
        if not cfg.adaptive_pinch:
            return cfg.pinch_threshold
        scaled = palm_size(landmarks) * cfg.pinch_threshold_ratio
        return float(np.clip(scaled, cfg.pinch_threshold_min, cfg.pinch_threshold_max))

    def pinch_states(self, landmarks: np.ndarray) -> PinchStates:
        threshold = self.pinch_threshold(landmarks)
        thumb = landmarks[THUMB_TIP]
        states = {}
        for finger in PINCH_FINGERS:
            d = distance(thumb, landmarks[FINGER_TIPS[finger]])
            states[finger] = PinchState(distance=d, is_pinching=d < threshold)
        return PinchStates(threshold=threshold, **states)

    def named_gestures(self, landmarks: np.ndarray, fingers: FingerStates) -> NamedGestures:
        f = fingers
        margin = self.config.thumb_vertical_margin
        thumb_only = f.thumb and not (f.index or f.middle or f.ring or f.pinky)
        thumb_y = float(landmarks[THUMB_TIP][1])
        wrist_y = float(landmarks[WRIST][1])
        ok_distance = distance(landmarks[THUMB_TIP], landmarks[FINGER_TIPS["index"]])

        return NamedGestures(
            pointing=f.index and not f.middle and not f.ring and not f.pinky,
            victory=f.index and f.middle and not f.ring and not f.pinky and not f.thumb,
            # smaller y is higher on screen
            thumbs_up=thumb_only and thumb_y < wrist_y - margin,
            thumbs_down=thumb_only and thumb_y > wrist_y + margin,
            ok=ok_distance <= self.config.ok_threshold and (f.middle or f.ring or f.pinky),
            call_me=f.thumb and f.pinky and not f.index and not f.middle and not f.ring,
            rock_on=f.index and f.pinky and not f.middle and not f.ring and not f.thumb,
            open_palm=f.extended_count >= 4,
            fist=f.extended_count <= 1 and not (f.index or f.middle or f.ring or f.pinky),
        )

    def palm_info(self, landmarks: np.ndarray, side: HandSide) -> PalmInfo:
        normal = palm_normal(landmarks, side)
        ax, ay, az = (abs(float(v)) for v in normal)
        y_dominant = ay > ax and ay > az
        return PalmInfo(
            center=palm_center(landmarks),
            normal=normal,
            direction=palm_direction(normal),
            facing_up=y_dominant and bool(normal[1] < 0),
            facing_down=y_dominant and bool(normal[1] > 0),
            facing_camera=az > ax and az > ay,
        )
