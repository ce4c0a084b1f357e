"""Hand detection with MediaPipe, producing `HandFrame`s with handedness."""

from __future__ import annotations

import logging

import numpy as np

from gesture_interaction.landmarks import HandFrame, HandSide, LandmarkError, as_landmarks

try:
    import mediapipe as mp
except ImportError:
    mp = None

logger = logging.getLogger("gesture_interaction.detector")

_SWAPPED = {HandSide.LEFT: HandSide.RIGHT, HandSide.RIGHT: HandSide.LEFT}


def frames_from_results(results, swap_handedness: bool = False) -> list[HandFrame]:
    """Convert a MediaPipe Hands result into hand frames.

    Hands whose landmarks or handedness label cannot be read are skipped.

    Args:
        results: Object with `multi_hand_landmarks` and `multi_handedness`.
        swap_handedness: MediaPipe labels assume a mirrored input image; set
            this when feeding unmirrored camera frames.
    """
    landmark_sets = getattr(results, "multi_hand_landmarks", None) or []
    handedness = getattr(results, "multi_handedness", None) or []

    frames = []
    for i, hand_landmarks in enumerate(landmark_sets):
        if i >= len(handedness):
            logger.debug("Hand %d has no handedness entry, skipped", i)
            continue
        category = handedness[i].classification[0]
        try:
            side = HandSide.parse(category.label)
            landmarks = as_landmarks(hand_landmarks.landmark)
        except LandmarkError as e:
            logger.debug("Hand %d skipped: %s", i, e)
            continue
        if swap_handedness:
            side = _SWAPPED[side]
        frames.append(HandFrame(landmarks=landmarks, side=side, score=float(category.score)))
    return frames


class HandDetector:
    """Extracts up to two labelled hands per image using MediaPipe Hands.

    Landmarks are (x, y, z) normalized to [0, 1] relative to image dimensions.
    """

    def __init__(
        self,
        max_hands: int = 2,
        min_detection_confidence: float = 0.7,
        min_tracking_confidence: float = 0.5,
        static_image_mode: bool = False,
        swap_handedness: bool = False,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install 'gesture-interaction[vision]'"
            )

        self.max_hands = max_hands
        self.swap_handedness = swap_handedness
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=static_image_mode,
            max_num_hands=max_hands,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect(self, frame_rgb: np.ndarray) -> list[HandFrame]:
        """Detect hands in an RGB image (H, W, 3), uint8.

        Returns:
            List of hand frames, empty if no hands were found.
        """
        results = self._hands.process(frame_rgb)
        return frames_from_results(results, swap_handedness=self.swap_handedness)

    def close(self):
        """Release MediaPipe resources."""
        self._hands.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
