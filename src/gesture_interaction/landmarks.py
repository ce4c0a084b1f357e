"""Landmark geometry: hand frames, distances, finger extension and palm math.

All helpers take a landmark array of shape (21, 3) in MediaPipe order and
assume it is well formed. Use `as_landmarks` at the boundary when the data
comes from somewhere untrusted (files, other processes).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_MCP, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

NUM_LANDMARKS = 21
LANDMARK_DIM = 3  # x, y, z

# (mcp, pip, dip, tip) per non-thumb finger
FINGER_JOINTS = {
    "index": (INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP),
    "middle": (MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP),
    "ring": (RING_MCP, RING_PIP, RING_DIP, RING_TIP),
    "pinky": (PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP),
}

FINGER_TIPS = {
    "index": INDEX_TIP,
    "middle": MIDDLE_TIP,
    "ring": RING_TIP,
    "pinky": PINKY_TIP,
}


class LandmarkError(ValueError):
    """Raised when landmark data does not describe a 21-point hand."""


class HandSide(Enum):
    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def parse(cls, label: str | HandSide) -> HandSide:
        if isinstance(label, HandSide):
            return label
        if not isinstance(label, str):
            raise LandmarkError(f"Hand side label must be a string, got {label!r}")
        try:
            return cls(label.capitalize())
        except ValueError:
            raise LandmarkError(f"Unknown hand side label: {label!r}") from None


@dataclass(frozen=True)
class HandFrame:
    """One hand in one frame: 21 landmarks plus the provider's side label."""
    landmarks: np.ndarray  # shape (21, 3)
    side: HandSide
    score: float = 1.0


def as_landmarks(data: Sequence | np.ndarray) -> np.ndarray:
    """Validate and convert raw landmark data to a float32 (21, 3) array.

    Accepts nested lists, arrays, or objects exposing x/y/z attributes
    (such as MediaPipe's NormalizedLandmark).

    Raises:
        LandmarkError: If the data cannot be shaped into (21, 3).
    """
    if len(data) and hasattr(data[0], "x"):
        data = [[p.x, p.y, getattr(p, "z", 0.0)] for p in data]

    try:
        arr = np.asarray(data, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise LandmarkError(f"Landmarks are not numeric: {e}") from e

    if arr.shape != (NUM_LANDMARKS, LANDMARK_DIM):
        raise LandmarkError(
            f"Expected landmarks of shape ({NUM_LANDMARKS}, {LANDMARK_DIM}), got {arr.shape}"
        )
    return arr


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two points (2D or 3D)."""
    return float(np.linalg.norm(np.asarray(a) - np.asarray(b)))


def is_finger_extended(landmarks: np.ndarray, finger: str, ratio: float = 1.2) -> bool:
    """A finger is extended when its tip is well beyond its MCP, seen from the wrist."""
    mcp, _pip, _dip, tip = FINGER_JOINTS[finger]
    wrist = landmarks[WRIST]
    return distance(landmarks[tip], wrist) > ratio * distance(landmarks[mcp], wrist)


def is_thumb_extended(landmarks: np.ndarray, factor: float = 0.6) -> bool:
    """Thumb extends sideways, so compare its tip against the index MCP instead."""
    index_mcp = landmarks[INDEX_MCP]
    reach = distance(landmarks[THUMB_TIP], index_mcp)
    return reach > factor * distance(landmarks[WRIST], index_mcp)


def palm_center(landmarks: np.ndarray) -> np.ndarray:
    """Midpoint of wrist and middle-finger MCP."""
    return (landmarks[WRIST] + landmarks[MIDDLE_MCP]) / 2.0


def palm_size(landmarks: np.ndarray) -> float:
    """Wrist to middle MCP length, a proxy for distance from the camera."""
    return distance(landmarks[WRIST], landmarks[MIDDLE_MCP])


def palm_normal(landmarks: np.ndarray, side: HandSide = HandSide.RIGHT) -> np.ndarray:
    """Palm normal from wrist→middle MCP and wrist→pinky MCP.

    The operand order is swapped for left hands so the normal points out of
    the palm for both sides.
    """
    wrist = landmarks[WRIST]
    if side == HandSide.LEFT:
        p1, p2 = landmarks[PINKY_MCP], landmarks[MIDDLE_MCP]
    else:
        p1, p2 = landmarks[MIDDLE_MCP], landmarks[PINKY_MCP]
    return np.cross(p1 - wrist, p2 - wrist)


def pinch_point(landmarks: np.ndarray) -> np.ndarray:
    """Midpoint between thumb tip and index tip."""
    return (landmarks[THUMB_TIP] + landmarks[INDEX_TIP]) / 2.0


def normalized_to_world(
    point: np.ndarray,
    world_scale: float = 10.0,
    invert_x: bool = True,
    invert_y: bool = True,
    center: float = 0.5,
) -> np.ndarray:
    """Map a normalized camera point onto the world plane (z = 0).

    The camera feed is shown mirrored, hence the default X inversion; screen
    Y grows downwards while world Y grows upwards.
    """
    x = (center - point[0]) if invert_x else (point[0] - center)
    y = (center - point[1]) if invert_y else (point[1] - center)
    return np.array([x * world_scale, y * world_scale, 0.0], dtype=np.float64)


def hands_by_side(hands: Sequence[HandFrame]) -> dict[HandSide, Optional[HandFrame]]:
    """Index a frame's hands by side. The first hand seen for a side wins."""
    result: dict[HandSide, Optional[HandFrame]] = {HandSide.LEFT: None, HandSide.RIGHT: None}
    for hand in hands:
        if result[hand.side] is None:
            result[hand.side] = hand
    return result
