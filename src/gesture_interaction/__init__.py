"""gesture-interaction - Pinch-driven object interaction from hand landmarks."""

__version__ = "0.1.0"

from gesture_interaction.landmarks import HandFrame, HandSide, LandmarkError
from gesture_interaction.config import ConfigError, EngineConfig
from gesture_interaction.classifier import PoseClassifier, PoseSnapshot, PalmDirection
from gesture_interaction.dynamics import DynamicGestureDetector, DynamicGestures, HelloWave
from gesture_interaction.scene import ObjectPose, ObjectRegistry, SceneRegistry
from gesture_interaction.interaction import InteractionEngine, InteractionEvent, PinchEdge
from gesture_interaction.bimanual import TwoHandScaler, TwoHandGestures
from gesture_interaction.tween import Tween, TweenManager
from gesture_interaction.autoreset import AutoResetScheduler, ResetPhase
from gesture_interaction.pipeline import InteractionPipeline, FrameResult, HandReport
from gesture_interaction.recorder import SessionRecorder, SessionPlayer
