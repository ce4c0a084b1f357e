"""Engine configuration: dataclass sections with YAML load/save.

Example YAML:

    pose:
      pinch_threshold: 0.07
      adaptive_pinch: true
    interaction:
      click_timeout: 1.0
      drag_side: Right
    auto_reset:
      timeout: 3.0

Sections and keys that are omitted keep their defaults. Unknown sections or
keys raise `ConfigError` so typos do not silently fall back to defaults.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import yaml

from gesture_interaction.landmarks import HandSide, LandmarkError
from gesture_interaction.tween import EASINGS

logger = logging.getLogger("gesture_interaction.config")


class ConfigError(ValueError):
    """Raised for malformed or unknown configuration entries."""


@dataclass
class PoseConfig:
    finger_extended_ratio: float = 1.2
    thumb_extended_factor: float = 0.6
    pinch_threshold: float = 0.07
    ok_threshold: float = 0.06
    thumb_vertical_margin: float = 0.1
    # Scale the pinch threshold with palm size instead of using a fixed one
    adaptive_pinch: bool = False
    pinch_threshold_ratio: float = 0.35
    pinch_threshold_min: float = 0.02
    pinch_threshold_max: float = 0.12


@dataclass
class WaveConfig:
    time_window: float = 0.9  # seconds
    min_samples: int = 5
    min_amplitude: float = 0.01
    y_range_ratio: float = 5.0
    min_step: float = 0.002
    min_direction_changes: int = 1


@dataclass
class HelloWaveConfig:
    raise_y_threshold: float = 0.7  # palm must be above this (smaller y = higher)
    min_delta: float = 0.01
    min_direction_changes: int = 2
    trigger_duration: float = 0.8  # seconds
    min_consecutive_frames: int = 5


@dataclass
class InteractionConfig:
    click_timeout: float = 1.0  # seconds
    scale_min: float = 0.2
    scale_max: float = 5.0
    drag_side: str = "Right"
    rotate_side: str = "Left"
    deselect_on_hands_lost: bool = True
    zoom_delta_threshold: float = 0.02


@dataclass
class RotationConfig:
    position_to_angle_ratio: float = 0.5  # radians per world unit
    deadzone: float = 0.05  # world units


@dataclass
class AutoResetConfig:
    timeout: float = 3.0  # seconds without hands before resetting
    duration: float = 2.0  # position/scale tween length
    rotation_duration_factor: float = 1.5
    easing: str = "ease_in_out"


@dataclass
class ViewConfig:
    world_scale: float = 10.0
    invert_x: bool = True
    invert_y: bool = True


_SECTIONS = {
    "pose": PoseConfig,
    "wave": WaveConfig,
    "hello_wave": HelloWaveConfig,
    "interaction": InteractionConfig,
    "rotation": RotationConfig,
    "auto_reset": AutoResetConfig,
    "view": ViewConfig,
}


@dataclass
class EngineConfig:
    """All tunables of the gesture interaction core."""
    pose: PoseConfig = field(default_factory=PoseConfig)
    wave: WaveConfig = field(default_factory=WaveConfig)
    hello_wave: HelloWaveConfig = field(default_factory=HelloWaveConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    rotation: RotationConfig = field(default_factory=RotationConfig)
    auto_reset: AutoResetConfig = field(default_factory=AutoResetConfig)
    view: ViewConfig = field(default_factory=ViewConfig)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> EngineConfig:
        config = cls()
        if not data:
            return config
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")

        for section_name, values in data.items():
            section_cls = _SECTIONS.get(section_name)
            if section_cls is None:
                raise ConfigError(f"Unknown config section: {section_name!r}")
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigError(f"Section {section_name!r} must be a mapping")

            known = {f.name for f in fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                raise ConfigError(
                    f"Unknown keys in {section_name!r}: {', '.join(sorted(unknown))}"
                )
            setattr(config, section_name, section_cls(**values))

        config.validate()
        return config

    def validate(self):
        """Check values that would otherwise fail later, mid-frame."""
        for key in ("drag_side", "rotate_side"):
            label = getattr(self.interaction, key)
            if label in ("", None):
                continue
            try:
                HandSide.parse(label)
            except LandmarkError:
                raise ConfigError(
                    f"interaction.{key} must be Left, Right or empty, got {label!r}"
                ) from None
        if self.auto_reset.easing not in EASINGS:
            raise ConfigError(
                f"Unknown auto_reset.easing {self.auto_reset.easing!r}; "
                f"expected one of {', '.join(EASINGS)}"
            )

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        config = cls.from_dict(data)
        logger.debug("Loaded config from %s", path)
        return config

    def to_yaml(self, path: str | Path):
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
