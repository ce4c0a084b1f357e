"""Per-frame orchestration of the interaction core.

`InteractionPipeline.process` runs one hand-tracking result through the
components in a fixed order:

1. per present hand: pose classification, dynamic gestures, single-hand
   interaction (absent sides are released and their history cleared);
2. two-hand scale, which needs both hands' fresh pinch state;
3. hands-lost deselection;
4. auto-reset, which needs this frame's hand presence.

`tick` is meant for render frames that carry no tracking result; it keeps the
reset animation moving.

Usage:
    pipeline = InteractionPipeline(SceneRegistry.with_defaults())
    pipeline.on_event(lambda evt: print(evt.kind, evt.object_id))
    result = pipeline.process(hands, timestamp=now)
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from gesture_interaction.autoreset import AutoResetScheduler, ResetPhase
from gesture_interaction.bimanual import TwoHandGestures, TwoHandScaler
from gesture_interaction.classifier import PoseClassifier, PoseSnapshot
from gesture_interaction.config import EngineConfig
from gesture_interaction.dynamics import DynamicGestureDetector, DynamicGestures
from gesture_interaction.interaction import HandFlags, InteractionEngine, InteractionEvent
from gesture_interaction.landmarks import HandFrame, HandSide, hands_by_side
from gesture_interaction.scene import ObjectRegistry, SceneRegistry
from gesture_interaction.tween import TweenManager

if TYPE_CHECKING:
    from gesture_interaction.detector import HandDetector

logger = logging.getLogger("gesture_interaction.pipeline")


@dataclass
class HandReport:
    """Everything derived from one present hand this frame."""
    snapshot: PoseSnapshot
    dynamic: DynamicGestures
    flags: HandFlags


@dataclass
class FrameResult:
    timestamp: float
    hands: dict[HandSide, HandReport] = field(default_factory=dict)
    two_hand: TwoHandGestures = field(default_factory=TwoHandGestures)
    selected_id: Optional[str] = None
    scaling: bool = False
    reset_phase: ResetPhase = ResetPhase.IDLE
    events: list[InteractionEvent] = field(default_factory=list)

    def hand(self, side: HandSide) -> Optional[HandReport]:
        return self.hands.get(side)


@dataclass
class PipelineStats:
    """Runtime performance statistics."""
    fps: float
    avg_latency_ms: float
    total_frames: int
    total_events: int
    active_hands: int = 0


class InteractionPipeline:
    """Wires classifier, dynamics, interaction, scaler and auto-reset together."""

    def __init__(
        self,
        registry: Optional[ObjectRegistry] = None,
        config: Optional[EngineConfig] = None,
        detector: Optional[HandDetector] = None,
    ):
        self.config = config or EngineConfig()
        self.registry = registry if registry is not None else SceneRegistry.with_defaults()
        self.detector = detector

        cfg = self.config
        self.classifier = PoseClassifier(cfg.pose)
        self.dynamics = DynamicGestureDetector(cfg.wave, cfg.hello_wave)
        self.engine = InteractionEngine(self.registry, cfg.interaction, cfg.rotation, cfg.view)
        self.scaler = TwoHandScaler(self.registry, cfg.interaction)
        self.tweens = TweenManager()
        self.autoreset = AutoResetScheduler(self.registry, cfg.auto_reset, self.tweens)

        self._callbacks: list[Callable[[InteractionEvent], None]] = []
        self._last_dynamic: dict[HandSide, DynamicGestures] = {}
        self._hands_present = False
        self._frame_times: deque = deque(maxlen=60)
        self._total_frames = 0
        self._total_events = 0

    def on_event(self, callback: Callable[[InteractionEvent], None]):
        """Register a callback for interaction events."""
        self._callbacks.append(callback)

    def process(self, hands: list[HandFrame], timestamp: Optional[float] = None) -> FrameResult:
        """Run one tracking result (zero to two hands) through the core."""
        t_start = time.monotonic()
        now = timestamp if timestamp is not None else t_start
        self._total_frames += 1

        by_side = hands_by_side(hands)
        result = FrameResult(timestamp=now)
        events: list[InteractionEvent] = []

        for side, frame in by_side.items():
            if frame is None:
                self._release(side, now)
                events.extend(self.engine.drain_events())
                continue

            snapshot = self.classifier.classify(frame)
            dynamic = self.dynamics.update(snapshot, timestamp=now)
            events.extend(self._dynamic_events(side, dynamic, now))
            flags = self.engine.update_hand(
                frame, snapshot, timestamp=now, scaling=self.scaler.active,
            )
            events.extend(self.engine.drain_events())
            result.hands[side] = HandReport(snapshot=snapshot, dynamic=dynamic, flags=flags)

        left = result.hands.get(HandSide.LEFT)
        right = result.hands.get(HandSide.RIGHT)
        result.two_hand = self.scaler.update(
            left.snapshot if left else None,
            right.snapshot if right else None,
            self.engine.selected_id,
            timestamp=now,
        )
        events.extend(self.scaler.drain_events())

        self._hands_present = bool(result.hands)
        if not self._hands_present:
            self.engine.hands_lost(now)
            events.extend(self.engine.drain_events())

        result.reset_phase = self.autoreset.update(self._hands_present, timestamp=now)
        events.extend(self.autoreset.drain_events())

        result.selected_id = self.engine.selected_id
        result.scaling = self.scaler.active
        result.events = events
        self._dispatch(events)

        self._frame_times.append(time.monotonic() - t_start)
        return result

    def process_frame(self, frame_rgb: np.ndarray, timestamp: Optional[float] = None) -> FrameResult:
        """Detect hands in an RGB image and process them."""
        if self.detector is None:
            raise RuntimeError("No hand detector configured for this pipeline")
        return self.process(self.detector.detect(frame_rgb), timestamp=timestamp)

    def tick(self, timestamp: Optional[float] = None) -> list[InteractionEvent]:
        """Advance timers and tweens between tracking results."""
        now = timestamp if timestamp is not None else time.monotonic()
        phase = self.autoreset.update(self._hands_present, timestamp=now)
        if phase != ResetPhase.RESETTING and self.tweens.is_animating:
            self.tweens.tick(now)
        events = self.autoreset.drain_events()
        self._dispatch(events)
        return events

    def _release(self, side: HandSide, now: float):
        self.engine.release(side, now)
        self.dynamics.reset(side)
        self._last_dynamic.pop(side, None)

    def _dynamic_events(self, side: HandSide, dynamic: DynamicGestures, now: float) -> list[InteractionEvent]:
        """Rising edges of the wave flags become events."""
        previous = self._last_dynamic.get(side, DynamicGestures())
        self._last_dynamic[side] = dynamic
        events = []
        if dynamic.waving and not previous.waving:
            events.append(InteractionEvent(kind="wave", timestamp=now, side=side))
        if dynamic.hello.is_waving and not previous.hello.is_waving:
            logger.debug("%s hello wave", side.value)
            events.append(InteractionEvent(
                kind="hello_wave", timestamp=now, side=side, value=dynamic.hello.duration,
            ))
        return events

    def _dispatch(self, events: list[InteractionEvent]):
        self._total_events += len(events)
        for event in events:
            for cb in self._callbacks:
                cb(event)

    @property
    def stats(self) -> PipelineStats:
        if self._frame_times:
            avg_latency = sum(self._frame_times) / len(self._frame_times)
            fps = 1.0 / avg_latency if avg_latency > 0 else 0
        else:
            avg_latency = 0
            fps = 0

        return PipelineStats(
            fps=fps,
            avg_latency_ms=avg_latency * 1000,
            total_frames=self._total_frames,
            total_events=self._total_events,
            active_hands=len(self._last_dynamic),
        )

    def reset(self):
        """Clear all interaction state. Object poses are left as they are."""
        for side in (HandSide.LEFT, HandSide.RIGHT):
            self._release(side, time.monotonic())
        self.engine.deselect()
        self.engine.drain_events()
        self.scaler.reset()
        self.scaler.drain_events()
        self.autoreset.cancel()
        self.autoreset.drain_events()
        self.tweens.cancel_all()
        self._hands_present = False
        self._frame_times.clear()
        self._total_frames = 0
        self._total_events = 0

    def close(self):
        """Release resources."""
        if self.detector is not None:
            self.detector.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
