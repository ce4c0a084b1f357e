"""End-to-end tests for the interaction pipeline."""

import numpy as np
import pytest

from gesture_interaction.autoreset import ResetPhase
from gesture_interaction.config import EngineConfig, InteractionConfig
from gesture_interaction.landmarks import HandSide
from gesture_interaction.pipeline import InteractionPipeline
from gesture_interaction.scene import SceneRegistry

from hands import open_palm, pinch_hand, pinch_hand_centered

DT = 1.0 / 30


def make_registry() -> SceneRegistry:
    reg = SceneRegistry()
    reg.add("a", position=(0, 0, 0), half_extents=(0.5, 0.5))
    reg.add("b", position=(3, 0, 0), half_extents=(0.5, 0.5))
    return reg


def make_pipeline(**config) -> InteractionPipeline:
    return InteractionPipeline(make_registry(), EngineConfig.from_dict(config))


def select_a(pipeline, t=0.0):
    """Click on object a with the right hand; returns all events."""
    events = []
    for dt, pinching in ((0.0, False), (0.05, True), (0.25, False)):
        result = pipeline.process([pinch_hand(at=(0.5, 0.5), pinching=pinching)], timestamp=t + dt)
        events.extend(result.events)
    return events


def pinch_pair(half_gap, pinching=True):
    return [
        pinch_hand_centered((0.5 - half_gap, 0.5), side=HandSide.LEFT, pinching=pinching),
        pinch_hand_centered((0.5 + half_gap, 0.5), side=HandSide.RIGHT, pinching=pinching),
    ]


class TestSelection:
    def test_click_selects(self):
        pipeline = make_pipeline()
        events = select_a(pipeline)
        assert pipeline.engine.selected_id == "a"
        select = [e for e in events if e.kind == "select"]
        assert len(select) == 1 and select[0].object_id == "a"

    def test_result_reports_hands(self):
        pipeline = make_pipeline()
        result = pipeline.process([pinch_hand(at=(0.5, 0.5))], timestamp=0.0)
        report = result.hand(HandSide.RIGHT)
        assert report is not None
        assert report.snapshot.pinch.index.is_pinching
        assert report.flags.pinching
        assert report.flags.touched_id == "a"
        assert result.hand(HandSide.LEFT) is None

    def test_hands_lost_deselects(self):
        pipeline = make_pipeline()
        select_a(pipeline)
        result = pipeline.process([], timestamp=1.0)
        assert result.selected_id is None
        assert [e.kind for e in result.events] == ["deselect"]

    def test_hands_lost_keeps_selection_when_disabled(self):
        pipeline = make_pipeline(interaction={"deselect_on_hands_lost": False})
        select_a(pipeline)
        assert pipeline.process([], timestamp=1.0).selected_id == "a"

    def test_absent_hand_is_released(self):
        pipeline = make_pipeline()
        select_a(pipeline)
        pipeline.process([pinch_hand(at=(0.5, 0.5))], timestamp=1.0)
        assert pipeline.engine.flags(HandSide.RIGHT).dragging

        left = open_palm(center=(0.2, 0.5), side=HandSide.LEFT)
        result = pipeline.process([left], timestamp=1.1)
        assert "drag_end" in [e.kind for e in result.events]
        assert not pipeline.engine.flags(HandSide.RIGHT).dragging
        assert result.selected_id == "a"


class TestDrag:
    def test_drag_moves_selection(self):
        pipeline = make_pipeline()
        select_a(pipeline)
        pipeline.process([pinch_hand(at=(0.5, 0.5))], timestamp=1.0)
        pipeline.process([pinch_hand(at=(0.4, 0.5))], timestamp=1.1)
        np.testing.assert_allclose(pipeline.registry.get_pose("a").position, [1.0, 0.0, 0.0], atol=1e-5)


class TestTwoHandScale:
    def test_scale_follows_palm_distance(self):
        pipeline = make_pipeline()
        select_a(pipeline)

        result = pipeline.process(pinch_pair(0.1), timestamp=1.0)
        assert result.scaling
        assert "scale_start" in [e.kind for e in result.events]

        result = pipeline.process(pinch_pair(0.2), timestamp=1.1)
        assert result.two_hand.scale == pytest.approx(2.0, rel=1e-4)
        assert pipeline.registry.get_pose("a").scale == pytest.approx(2.0, rel=1e-4)

    def test_scaling_suspends_drag(self):
        pipeline = make_pipeline()
        select_a(pipeline)
        pipeline.process(pinch_pair(0.1), timestamp=1.0)
        before = pipeline.registry.get_pose("a").position.copy()

        result = pipeline.process(pinch_pair(0.2), timestamp=1.1)
        assert not result.hand(HandSide.RIGHT).flags.dragging
        assert not result.hand(HandSide.LEFT).flags.rotating
        np.testing.assert_allclose(pipeline.registry.get_pose("a").position, before)

    def test_scale_clamped(self):
        pipeline = make_pipeline(interaction={"scale_max": 1.5})
        select_a(pipeline)
        pipeline.process(pinch_pair(0.05), timestamp=1.0)
        pipeline.process(pinch_pair(0.3), timestamp=1.1)
        assert pipeline.registry.get_pose("a").scale == pytest.approx(1.5)

    def test_releasing_pinch_ends_scale(self):
        pipeline = make_pipeline()
        select_a(pipeline)
        pipeline.process(pinch_pair(0.1), timestamp=1.0)
        result = pipeline.process(pinch_pair(0.1, pinching=False), timestamp=1.1)
        assert not result.scaling
        assert "scale_end" in [e.kind for e in result.events]

    def test_no_scale_without_selection(self):
        pipeline = make_pipeline()
        result = pipeline.process(pinch_pair(0.1), timestamp=0.0)
        assert result.two_hand.both_present
        assert not result.scaling


class TestAutoReset:
    def moved(self):
        pipeline = make_pipeline()
        select_a(pipeline)
        pipeline.process([pinch_hand(at=(0.5, 0.5))], timestamp=1.0)
        pipeline.process([pinch_hand(at=(0.4, 0.5))], timestamp=1.1)
        pipeline.process([], timestamp=2.0)
        return pipeline

    def test_reset_after_idle(self):
        pipeline = self.moved()
        assert pipeline.autoreset.phase == ResetPhase.PENDING

        events = pipeline.tick(5.0)
        assert [e.kind for e in events] == ["reset_start"]
        pipeline.tick(6.0)
        np.testing.assert_allclose(pipeline.registry.get_pose("a").position, [0.5, 0, 0], atol=1e-5)

        pipeline.tick(7.0)
        events = pipeline.tick(8.0)
        assert [e.kind for e in events] == ["reset_end"]
        assert pipeline.autoreset.phase == ResetPhase.IDLE
        np.testing.assert_allclose(pipeline.registry.get_pose("a").position, [0, 0, 0], atol=1e-6)

    def test_hand_halts_reset(self):
        pipeline = self.moved()
        pipeline.tick(5.0)
        pipeline.tick(6.0)
        result = pipeline.process([open_palm(center=(0.8, 0.8))], timestamp=6.0)
        assert result.reset_phase == ResetPhase.IDLE

        pipeline.tick(9.0)
        np.testing.assert_allclose(pipeline.registry.get_pose("a").position, [0.5, 0, 0], atol=1e-5)

    def test_no_reset_while_hands_present(self):
        pipeline = make_pipeline()
        for i in range(5):
            result = pipeline.process([open_palm(center=(0.8, 0.8))], timestamp=i * 2.0)
            assert result.reset_phase == ResetPhase.IDLE


class TestEvents:
    def test_callbacks_receive_events(self):
        pipeline = make_pipeline()
        received = []
        pipeline.on_event(received.append)
        events = select_a(pipeline)
        assert received == events
        assert pipeline.stats.total_events == len(events)

    def test_hello_wave_event(self):
        pipeline = make_pipeline()
        x, step = 0.3, 0.05
        events = []
        for i in range(45):
            events.extend(pipeline.process([open_palm(center=(x, 0.4))], timestamp=i * DT).events)
            if not 0.3 - 1e-9 <= x + step <= 0.5 + 1e-9:
                step = -step
            x += step

        hello = [e for e in events if e.kind == "hello_wave"]
        assert hello
        assert hello[0].side == HandSide.RIGHT
        assert hello[0].value >= 0.8
        assert "wave" in [e.kind for e in events]


class TestPipelineLifecycle:
    def test_default_registry_has_layout(self):
        pipeline = InteractionPipeline()
        assert len(pipeline.registry) == 6

    def test_process_frame_needs_detector(self):
        pipeline = make_pipeline()
        with pytest.raises(RuntimeError):
            pipeline.process_frame(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_stats(self):
        pipeline = make_pipeline()
        for i in range(3):
            pipeline.process([], timestamp=i * DT)
        stats = pipeline.stats
        assert stats.total_frames == 3
        assert stats.active_hands == 0

    def test_reset(self):
        pipeline = make_pipeline()
        select_a(pipeline)
        pipeline.reset()
        assert pipeline.engine.selected_id is None
        assert pipeline.stats.total_frames == 0
        assert pipeline.autoreset.phase == ResetPhase.IDLE

    def test_context_manager(self):
        with InteractionPipeline(make_registry(), EngineConfig(interaction=InteractionConfig())) as pipeline:
            assert pipeline.process([], timestamp=0.0).selected_id is None
