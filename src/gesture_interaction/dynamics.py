"""Dynamic gesture detection from palm-center motion over time.

Two detectors share one per-side history record:

- `WaveDetector`: ambient side-to-side oscillation inside a short sliding
  window. Gated-out frames are ignored (history kept as is).
- `HelloWaveDetector`: a deliberate raised-hand greeting that has to be
  sustained. Any non-qualifying frame wipes its state, so a single dropped
  frame restarts the timer; this keeps false positives down.

Usage:
    detector = DynamicGestureDetector()
    # In frame loop, after pose classification:
    result = detector.update(snapshot, timestamp=now)
    if result.hello.is_waving:
        print(f"Hello! ({result.hello.duration:.1f}s)")
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from gesture_interaction.classifier import PalmDirection, PoseSnapshot
from gesture_interaction.config import HelloWaveConfig, WaveConfig
from gesture_interaction.landmarks import HandSide


@dataclass
class PalmSample:
    x: float
    y: float
    t: float


@dataclass
class HelloWave:
    is_waving: bool = False
    duration: float = 0.0  # seconds since the wave timer started


@dataclass
class DynamicGestures:
    waving: bool = False
    hello: HelloWave = field(default_factory=HelloWave)


@dataclass
class GestureHistory:
    """Cross-frame motion state for one hand side."""
    positions: deque = field(default_factory=deque)  # PalmSample, oldest first
    # ambient wave
    wave_direction_changes: int = 0
    wave_last_direction: int = 0
    wave_last_x: Optional[float] = None
    # hello wave
    hello_start_time: Optional[float] = None
    hello_direction_changes: int = 0
    hello_consecutive_frames: int = 0
    hello_last_x: Optional[float] = None
    hello_last_direction: int = 0

    def reset_wave(self):
        self.positions.clear()
        self.wave_direction_changes = 0
        self.wave_last_direction = 0
        self.wave_last_x = None

    def reset_hello(self):
        self.hello_start_time = None
        self.hello_direction_changes = 0
        self.hello_consecutive_frames = 0
        self.hello_last_x = None
        self.hello_last_direction = 0

    def reset(self):
        self.reset_wave()
        self.reset_hello()


def _direction(delta: float, threshold: float) -> int:
    if delta > threshold:
        return 1
    if delta < -threshold:
        return -1
    return 0


class WaveDetector:
    """Detects side-to-side waving in a sliding time window."""

    def __init__(self, config: Optional[WaveConfig] = None):
        self.config = config or WaveConfig()

    @staticmethod
    def is_gated(snapshot: PoseSnapshot) -> bool:
        """True when the pose is eligible for wave detection."""
        return (
            snapshot.gestures.open_palm
            and not snapshot.gestures.ok
            and snapshot.palm.direction != PalmDirection.AWAY
        )

    def update(self, history: GestureHistory, snapshot: PoseSnapshot, now: float) -> bool:
        if not self.is_gated(snapshot):
            return False

        center = snapshot.palm.center
        self._push(history, float(center[0]), float(center[1]), now)
        return self._evaluate(history)

    def _push(self, history: GestureHistory, x: float, y: float, now: float):
        history.positions.append(PalmSample(x=x, y=y, t=now))
        window = self.config.time_window
        while history.positions and now - history.positions[0].t > window:
            history.positions.popleft()

    def _evaluate(self, history: GestureHistory) -> bool:
        cfg = self.config
        samples = list(history.positions)
        if len(samples) < cfg.min_samples:
            return False

        xs = [s.x for s in samples]
        ys = [s.y for s in samples]
        x_range = max(xs) - min(xs)
        if x_range < cfg.min_amplitude:
            return False

        # vertical motion masquerading as a wave
        y_range = max(ys) - min(ys)
        if y_range > x_range * cfg.y_range_ratio:
            return False

        changes = 0
        last_direction = 0
        for prev, cur in zip(xs, xs[1:]):
            dx = cur - prev
            if abs(dx) < cfg.min_step:
                continue
            direction = 1 if dx > 0 else -1
            if last_direction != 0 and direction != last_direction:
                changes += 1
            last_direction = direction

        history.wave_direction_changes = changes
        history.wave_last_direction = last_direction
        history.wave_last_x = xs[-1]
        return changes >= cfg.min_direction_changes


class HelloWaveDetector:
    """Detects a raised, open-palm greeting wave sustained over time."""

    def __init__(self, config: Optional[HelloWaveConfig] = None):
        self.config = config or HelloWaveConfig()

    def is_gated(self, snapshot: PoseSnapshot) -> bool:
        g = snapshot.gestures
        blocked = g.pointing or g.thumbs_up or g.ok or g.fist
        raised = float(snapshot.palm.center[1]) < self.config.raise_y_threshold
        return (
            g.open_palm
            and raised
            and not blocked
            and snapshot.palm.direction != PalmDirection.AWAY
        )

    def update(self, history: GestureHistory, snapshot: PoseSnapshot, now: float) -> HelloWave:
        if not self.is_gated(snapshot):
            history.reset_hello()
            return HelloWave()

        cfg = self.config
        x = float(snapshot.palm.center[0])

        if history.hello_last_x is not None:
            direction = _direction(x - history.hello_last_x, cfg.min_delta)
            if direction != 0:
                if history.hello_last_direction != 0 and direction != history.hello_last_direction:
                    history.hello_direction_changes += 1
                history.hello_last_direction = direction

            if history.hello_direction_changes >= cfg.min_direction_changes:
                if history.hello_start_time is None:
                    history.hello_start_time = now
                history.hello_consecutive_frames += 1

        history.hello_last_x = x

        if history.hello_start_time is not None:
            duration = now - history.hello_start_time
            if (
                duration > cfg.trigger_duration
                and history.hello_consecutive_frames > cfg.min_consecutive_frames
            ):
                return HelloWave(is_waving=True, duration=duration)
        return HelloWave()


class DynamicGestureDetector:
    """Runs the wave and hello-wave detectors with one history per hand side."""

    def __init__(
        self,
        wave_config: Optional[WaveConfig] = None,
        hello_config: Optional[HelloWaveConfig] = None,
    ):
        self.wave = WaveDetector(wave_config)
        self.hello = HelloWaveDetector(hello_config)
        self._histories: dict[HandSide, GestureHistory] = {
            HandSide.LEFT: GestureHistory(),
            HandSide.RIGHT: GestureHistory(),
        }

    def update(self, snapshot: PoseSnapshot, timestamp: Optional[float] = None) -> DynamicGestures:
        now = timestamp if timestamp is not None else time.monotonic()
        history = self._histories[snapshot.side]
        return DynamicGestures(
            waving=self.wave.update(history, snapshot, now),
            hello=self.hello.update(history, snapshot, now),
        )

    def history(self, side: HandSide) -> GestureHistory:
        return self._histories[side]

    def reset(self, side: Optional[HandSide] = None):
        """Clear history for one or both sides."""
        sides = [side] if side is not None else list(self._histories)
        for s in sides:
            self._histories[s].reset()
