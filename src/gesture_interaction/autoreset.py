"""Auto-reset: put every object back where it started once the hands leave.

    IDLE --no hands--> PENDING --timeout--> RESETTING --tweens done--> IDLE
      ^                   |                     |
      +----hand seen------+---------------------+

A hand reappearing cancels the timer and the in-flight tweens; objects stay
wherever the tweens had taken them. After a reset completes the scheduler
stays idle until a hand has been seen again, so an empty room does not loop.
The scheduler only writes object pose, never the selection.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Optional

from gesture_interaction.config import AutoResetConfig
from gesture_interaction.interaction import InteractionEvent
from gesture_interaction.scene import ObjectRegistry
from gesture_interaction.tween import TweenManager

logger = logging.getLogger("gesture_interaction.autoreset")


class ResetPhase(Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESETTING = "resetting"


class AutoResetScheduler:
    def __init__(
        self,
        registry: ObjectRegistry,
        config: Optional[AutoResetConfig] = None,
        tweens: Optional[TweenManager] = None,
    ):
        self.registry = registry
        self.config = config or AutoResetConfig()
        self.tweens = tweens if tweens is not None else TweenManager()
        self._phase = ResetPhase.IDLE
        self._pending_since: Optional[float] = None
        self._armed = True
        self._tween_ids: set[str] = set()
        self._events: list[InteractionEvent] = []

    @property
    def phase(self) -> ResetPhase:
        return self._phase

    @property
    def armed(self) -> bool:
        return self._armed

    def update(self, hands_present: bool, timestamp: Optional[float] = None) -> ResetPhase:
        """Advance the state machine with this frame's hand presence."""
        now = timestamp if timestamp is not None else time.monotonic()

        if hands_present:
            self._armed = True
            if self._phase != ResetPhase.IDLE:
                self.cancel()
            return self._phase

        if self._phase == ResetPhase.IDLE:
            if self._armed:
                self._phase = ResetPhase.PENDING
                self._pending_since = now
        elif self._phase == ResetPhase.PENDING:
            if now - self._pending_since >= self.config.timeout:
                self._start_reset(now)
        else:
            self._advance(now)
        return self._phase

    def tick(self, timestamp: Optional[float] = None) -> ResetPhase:
        """Advance running reset tweens (render-frame rate)."""
        now = timestamp if timestamp is not None else time.monotonic()
        if self._phase == ResetPhase.RESETTING:
            self._advance(now)
        return self._phase

    def cancel(self):
        """Drop the timer and any reset tween; objects keep their current pose."""
        if self._phase == ResetPhase.RESETTING:
            logger.info("Auto-reset interrupted")
        for tween_id in self._tween_ids:
            self.tweens.cancel(tween_id)
        self._tween_ids.clear()
        self._pending_since = None
        self._phase = ResetPhase.IDLE

    def drain_events(self) -> list[InteractionEvent]:
        events, self._events = self._events, []
        return events

    def _start_reset(self, now: float):
        cfg = self.config
        rotation_duration = cfg.duration * cfg.rotation_duration_factor
        self._pending_since = None
        self._phase = ResetPhase.RESETTING

        for object_id in self.registry.object_ids():
            current = self.registry.get_pose(object_id)
            initial = self.registry.get_initial_pose(object_id)
            self._tween(
                f"reset:{object_id}:position", current.position, initial.position,
                cfg.duration, lambda v, oid=object_id: self.registry.set_position(oid, v), now,
            )
            self._tween(
                f"reset:{object_id}:rotation", current.rotation, initial.rotation,
                rotation_duration, lambda v, oid=object_id: self.registry.set_rotation(oid, v), now,
            )
            self._tween(
                f"reset:{object_id}:scale", current.scale, initial.scale,
                cfg.duration, lambda v, oid=object_id: self.registry.set_scale(oid, v), now,
            )

        logger.info("Auto-reset started for %d objects", len(self.registry.object_ids()))
        self._events.append(InteractionEvent(kind="reset_start", timestamp=now))
        self._advance(now)

    def _tween(self, tween_id, start, end, duration, setter, now):
        self.tweens.create(
            tween_id, start=start, end=end, duration=duration,
            setter=setter, easing=self.config.easing, now=now,
        )
        self._tween_ids.add(tween_id)

    def _advance(self, now: float):
        self.tweens.tick(now)
        self._tween_ids = {tid for tid in self._tween_ids if tid in self.tweens}
        if self._tween_ids:
            return
        self._phase = ResetPhase.IDLE
        self._armed = False
        logger.info("Auto-reset complete")
        self._events.append(InteractionEvent(kind="reset_end", timestamp=now))
