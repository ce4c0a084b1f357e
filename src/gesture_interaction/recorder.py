"""Session recording and replay: capture hand frames to disk.

Recordings let the interaction core run without a camera:
- reproducible tests of whole gesture sequences
- headless CI
- deterministic demos through `gesture-interaction replay`

File format (JSON):

    {"version": 1, "frames": [
        {"timestamp": 0.033, "hands": [
            {"side": "Right", "score": 0.98, "landmarks": [[x, y, z], ...]}
        ]}
    ]}
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from gesture_interaction.landmarks import HandFrame, HandSide, LandmarkError, as_landmarks

logger = logging.getLogger("gesture_interaction.recorder")

FORMAT_VERSION = 1


@dataclass
class RecordedFrame:
    """A single frame in a recording."""
    timestamp: float  # seconds from recording start
    hands: list[HandFrame]


def _hand_to_dict(hand: HandFrame) -> dict:
    return {
        "side": hand.side.value,
        "score": float(hand.score),
        "landmarks": hand.landmarks.tolist(),
    }


def _hand_from_dict(data: dict) -> HandFrame:
    return HandFrame(
        landmarks=as_landmarks(data["landmarks"]),
        side=HandSide.parse(data["side"]),
        score=float(data.get("score", 1.0)),
    )


class SessionRecorder:
    """Records hand frames to a file.

    Usage:
        recorder = SessionRecorder()
        recorder.start()
        # In your frame loop:
        recorder.add_frame(hands)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self):
        self._frames: list[RecordedFrame] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self, timestamp: Optional[float] = None):
        """Begin a new recording session."""
        self._frames = []
        self._start_time = timestamp if timestamp is not None else time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def add_frame(self, hands: list[HandFrame], timestamp: Optional[float] = None):
        """Add a frame; ignored unless recording."""
        if not self._recording:
            return
        now = timestamp if timestamp is not None else time.monotonic()
        self._frames.append(RecordedFrame(timestamp=now - self._start_time, hands=list(hands)))

    def to_dict(self) -> dict:
        return {
            "version": FORMAT_VERSION,
            "frames": [
                {"timestamp": f.timestamp, "hands": [_hand_to_dict(h) for h in f.hands]}
                for f in self._frames
            ],
        }

    def save(self, path: str | Path):
        """Save recording to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f)
        logger.info("Saved %d frames to %s", len(self._frames), path)


class SessionPlayer:
    """Replays a recorded session.

    Usage:
        player = SessionPlayer.load("session.json")
        for frame in player.play():
            pipeline.process(frame.hands, timestamp=frame.timestamp)
    """

    def __init__(self, frames: list[RecordedFrame]):
        self._frames = frames

    @classmethod
    def from_dict(cls, data: dict) -> SessionPlayer:
        if not isinstance(data, dict):
            raise ValueError(f"Recording root must be an object, got {type(data).__name__}")
        version = data.get("version")
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version: {version!r}")
        frames = []
        raw_frames = data.get("frames", [])
        if not isinstance(raw_frames, list):
            raise ValueError("Recording frames must be a list")
        for i, raw in enumerate(raw_frames):
            try:
                timestamp = float(raw["timestamp"])
                hands = [_hand_from_dict(h) for h in raw.get("hands", [])]
            except (KeyError, TypeError, AttributeError, LandmarkError) as e:
                raise ValueError(f"Malformed frame {i}: {e!r}") from e
            frames.append(RecordedFrame(timestamp=timestamp, hands=hands))
        return cls(frames)

    @classmethod
    def load(cls, path: str | Path) -> SessionPlayer:
        """Load a recording from a JSON file."""
        with open(path) as f:
            data = json.load(f)
        player = cls.from_dict(data)
        logger.debug("Loaded %d frames from %s", player.frame_count, path)
        return player

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def play(self) -> Iterator[RecordedFrame]:
        """Iterate through all frames instantly (no timing)."""
        yield from self._frames

    def play_realtime(self, speed: float = 1.0) -> Iterator[RecordedFrame]:
        """Replay at original timing (or scaled by speed factor)."""
        if not self._frames:
            return

        start = time.monotonic()
        for frame in self._frames:
            target_time = frame.timestamp / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield frame

    def get_frame(self, index: int) -> Optional[RecordedFrame]:
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None
