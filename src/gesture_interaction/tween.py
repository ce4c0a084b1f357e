"""Timed interpolation with cancellable handles.

A `Tween` interpolates a number or vector from `start` to `end` over
`duration` seconds and hands each eased value to a setter. `TweenManager`
keeps the active tweens keyed by id; creating a tween with an id that is
already running replaces it. Cancelling simply drops the tween, so the
target keeps whatever value it last received.

Usage:
    tweens = TweenManager()
    tweens.create("v:position", start=pos, end=home, duration=2.0,
                  setter=lambda p: registry.set_position("v", p), now=t0)
    while tweens.is_animating:
        tweens.tick(time.monotonic())
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

import numpy as np

Value = Union[float, np.ndarray]


def linear(t: float) -> float:
    return t


def ease_out(t: float) -> float:
    """Quadratic ease-out."""
    return t * (2 - t)


def ease_in_out(t: float) -> float:
    """Cubic ease-in-out."""
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2


def ease_out_cubic(t: float) -> float:
    return 1 - (1 - t) ** 3


EASINGS: dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease_out": ease_out,
    "ease_in_out": ease_in_out,
    "ease_out_cubic": ease_out_cubic,
}


def get_easing(name: str) -> Callable[[float], float]:
    try:
        return EASINGS[name]
    except KeyError:
        raise ValueError(
            f"Unknown easing {name!r}; expected one of {', '.join(EASINGS)}"
        ) from None


@dataclass
class Tween:
    id: str
    start: Value
    end: Value
    duration: float
    setter: Callable[[Value], None]
    start_time: float
    easing: Callable[[float], float] = ease_in_out

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(max((now - self.start_time) / self.duration, 0.0), 1.0)

    def value_at(self, now: float) -> Value:
        k = self.easing(self.progress(now))
        return self.start + (self.end - self.start) * k

    def apply(self, now: float) -> bool:
        """Push the value for `now` to the setter. Returns True when finished."""
        self.setter(self.value_at(now))
        return self.progress(now) >= 1.0


class TweenManager:
    """Active tweens keyed by id."""

    def __init__(self):
        self._tweens: dict[str, Tween] = {}

    def create(
        self,
        tween_id: str,
        start: Value,
        end: Value,
        duration: float,
        setter: Callable[[Value], None],
        easing: Union[str, Callable[[float], float]] = "ease_in_out",
        now: Optional[float] = None,
    ) -> Tween:
        now = now if now is not None else time.monotonic()
        if isinstance(easing, str):
            easing = get_easing(easing)
        if isinstance(start, np.ndarray) or isinstance(end, np.ndarray):
            start = np.array(start, dtype=np.float64)
            end = np.array(end, dtype=np.float64)
        else:
            start, end = float(start), float(end)

        tween = Tween(
            id=tween_id,
            start=start,
            end=end,
            duration=duration,
            setter=setter,
            start_time=now,
            easing=easing,
        )
        self._tweens[tween_id] = tween
        return tween

    def cancel(self, tween_id: str) -> bool:
        return self._tweens.pop(tween_id, None) is not None

    def cancel_all(self) -> int:
        count = len(self._tweens)
        self._tweens.clear()
        return count

    def tick(self, now: Optional[float] = None) -> list[str]:
        """Advance every tween; returns the ids that completed this tick."""
        now = now if now is not None else time.monotonic()
        finished = []
        for tween_id, tween in list(self._tweens.items()):
            if tween.apply(now):
                finished.append(tween_id)
        for tween_id in finished:
            del self._tweens[tween_id]
        return finished

    def get(self, tween_id: str) -> Optional[Tween]:
        return self._tweens.get(tween_id)

    @property
    def is_animating(self) -> bool:
        return bool(self._tweens)

    def __len__(self) -> int:
        return len(self._tweens)

    def __contains__(self, tween_id: str) -> bool:
        return tween_id in self._tweens
