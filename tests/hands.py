"""Synthetic hand builders shared by the tests.

Hands are drawn upright (fingers toward smaller y) in the image plane. The
layout is mirrored for left hands so that the palm normal faces the camera
for both sides by default.
"""

from __future__ import annotations

import numpy as np

from gesture_interaction.classifier import PoseClassifier, PoseSnapshot
from gesture_interaction.landmarks import (
    FINGER_JOINTS,
    HandFrame,
    HandSide,
    THUMB_CMC,
    THUMB_IP,
    THUMB_MCP,
    THUMB_TIP,
    WRIST,
)

ALL_FINGERS = ("thumb", "index", "middle", "ring", "pinky")

# Offsets from the wrist at size 1, x for a right hand facing the camera.
MCP_OFFSETS = {
    "index": (-0.03, -0.09),
    "middle": (0.0, -0.10),
    "ring": (0.025, -0.095),
    "pinky": (0.045, -0.085),
}
EXTENDED = ((0.0, -0.03), (0.0, -0.05), (0.0, -0.07))  # pip, dip, tip from MCP
CURLED = ((0.0, -0.02), (0.0, -0.005), (0.0, 0.02))
THUMB_JOINTS = ((-0.02, -0.02), (-0.045, -0.04), (-0.065, -0.055))
THUMB_TIP_EXTENDED = (-0.10, -0.06)
THUMB_TIP_CURLED = (-0.02, -0.07)

# Thumb-index pinch geometry
PINCH_INDEX = ((-0.035, -0.11), (-0.04, -0.12), (-0.045, -0.13))
PINCH_THUMB_CLOSED = (-0.05, -0.115)
PINCH_THUMB_OPEN = (-0.11, -0.08)

PALM_CENTER_OFFSET = (0.0, -0.05)

CLASSIFIER = PoseClassifier()


def make_landmarks(
    extended=ALL_FINGERS,
    center=(0.5, 0.5),
    side: HandSide = HandSide.RIGHT,
    size: float = 1.0,
    facing: str = "camera",
    pinch=None,
    thumb_tip=None,
) -> np.ndarray:
    """Build a (21, 3) hand whose palm center sits at `center`.

    Args:
        extended: Fingers drawn extended; the rest are curled.
        pinch: None for plain fingers, True for a closed thumb-index pinch,
            False for the same hand with thumb and index apart.
        thumb_tip: Override for the thumb tip offset (size 1, right hand).
    """
    mirror = 1.0 if side == HandSide.RIGHT else -1.0
    if facing == "away":
        mirror = -mirror

    offsets = np.zeros((21, 2), dtype=np.float64)
    for finger, (mx, my) in MCP_OFFSETS.items():
        mcp, pip, dip, tip = FINGER_JOINTS[finger]
        offsets[mcp] = (mx, my)
        steps = EXTENDED if finger in extended else CURLED
        for joint, (dx, dy) in zip((pip, dip, tip), steps):
            offsets[joint] = (mx + dx, my + dy)

    for joint, xy in zip((THUMB_CMC, THUMB_MCP, THUMB_IP), THUMB_JOINTS):
        offsets[joint] = xy
    offsets[THUMB_TIP] = THUMB_TIP_EXTENDED if "thumb" in extended else THUMB_TIP_CURLED

    if pinch is not None:
        mcp, pip, dip, tip = FINGER_JOINTS["index"]
        for joint, xy in zip((pip, dip, tip), PINCH_INDEX):
            offsets[joint] = xy
        offsets[THUMB_TIP] = PINCH_THUMB_CLOSED if pinch else PINCH_THUMB_OPEN

    if thumb_tip is not None:
        offsets[THUMB_TIP] = thumb_tip

    offsets[:, 0] *= mirror
    offsets *= size

    wrist = np.array(center, dtype=np.float64) - np.array(PALM_CENTER_OFFSET) * size
    lm = np.zeros((21, 3), dtype=np.float32)
    lm[:, :2] = wrist + offsets
    lm[WRIST, :2] = wrist
    return lm


def hand_frame(side: HandSide = HandSide.RIGHT, **kwargs) -> HandFrame:
    return HandFrame(landmarks=make_landmarks(side=side, **kwargs), side=side)


def open_palm(center=(0.5, 0.5), side: HandSide = HandSide.RIGHT, **kwargs) -> HandFrame:
    return hand_frame(side=side, center=center, **kwargs)


def fist(center=(0.5, 0.5), side: HandSide = HandSide.RIGHT) -> HandFrame:
    return hand_frame(side=side, center=center, extended=())


def pinch_offset(side: HandSide, pinching: bool) -> np.ndarray:
    """Pinch point minus palm center for a pinch hand at size 1."""
    mirror = 1.0 if side == HandSide.RIGHT else -1.0
    thumb = PINCH_THUMB_CLOSED if pinching else PINCH_THUMB_OPEN
    index = PINCH_INDEX[-1]
    mid = np.array([(thumb[0] + index[0]) / 2 * mirror, (thumb[1] + index[1]) / 2])
    return mid - np.array(PALM_CENTER_OFFSET)


def pinch_hand(at=(0.5, 0.5), side: HandSide = HandSide.RIGHT, pinching: bool = True) -> HandFrame:
    """Hand whose thumb-index midpoint is at `at` (normalized coordinates)."""
    center = np.array(at, dtype=np.float64) - pinch_offset(side, pinching)
    return hand_frame(side=side, center=tuple(center), extended=(), pinch=pinching)


def pinch_hand_centered(center=(0.5, 0.5), side: HandSide = HandSide.RIGHT, pinching: bool = True) -> HandFrame:
    """Pinch hand positioned by its palm center."""
    return hand_frame(side=side, center=center, extended=(), pinch=pinching)


def snapshot(frame: HandFrame) -> PoseSnapshot:
    return CLASSIFIER.classify(frame)
