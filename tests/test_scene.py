"""Tests for the in-memory object registry."""

import numpy as np
import pytest

from gesture_interaction.scene import DEFAULT_LAYOUT, SceneRegistry, design_to_world


class TestSceneRegistry:
    def test_add_records_initial_pose(self):
        reg = SceneRegistry()
        reg.add("a", position=(1, 2, 0), rotation=(0.1, 0, 0), scale=2.0)
        reg.set_position("a", np.array([5.0, 5.0, 0.0]))
        reg.set_scale("a", 3.0)

        initial = reg.get_initial_pose("a")
        np.testing.assert_allclose(initial.position, [1, 2, 0])
        np.testing.assert_allclose(initial.rotation, [0.1, 0, 0])
        assert initial.scale == 2.0
        assert reg.get_pose("a").scale == 3.0

    def test_get_pose_returns_copy(self):
        reg = SceneRegistry()
        reg.add("a")
        pose = reg.get_pose("a")
        pose.position[0] = 99.0
        assert reg.get_pose("a").position[0] == 0.0

    def test_unknown_id_raises_key_error(self):
        reg = SceneRegistry()
        with pytest.raises(KeyError):
            reg.get_pose("missing")
        with pytest.raises(KeyError):
            reg.set_scale("missing", 1.0)

    def test_query_hits_box(self):
        reg = SceneRegistry()
        reg.add("a", position=(0, 0, 0), half_extents=(0.5, 0.5))
        reg.add("b", position=(3, 0, 0), half_extents=(0.5, 0.5))
        assert reg.query_object_at(np.array([0.4, -0.4, 0.0])) == "a"
        assert reg.query_object_at(np.array([3.2, 0.0, 0.0])) == "b"
        assert reg.query_object_at(np.array([1.5, 0.0, 0.0])) is None

    def test_hit_box_scales_with_object(self):
        reg = SceneRegistry()
        reg.add("a", half_extents=(0.5, 0.5))
        point = np.array([0.8, 0.0, 0.0])
        assert reg.query_object_at(point) is None
        reg.set_scale("a", 2.0)
        assert reg.query_object_at(point) == "a"

    def test_hit_box_follows_position(self):
        reg = SceneRegistry()
        reg.add("a", half_extents=(0.5, 0.5))
        reg.set_position("a", np.array([2.0, 1.0, 0.0]))
        assert reg.query_object_at(np.array([2.0, 1.0, 0.0])) == "a"
        assert reg.query_object_at(np.array([0.0, 0.0, 0.0])) is None

    def test_first_added_wins_on_overlap(self):
        reg = SceneRegistry()
        reg.add("a", half_extents=(1, 1))
        reg.add("b", half_extents=(1, 1))
        assert reg.query_object_at(np.zeros(3)) == "a"

    def test_container_protocol(self):
        reg = SceneRegistry()
        reg.add("a")
        assert len(reg) == 1
        assert "a" in reg
        assert "b" not in reg
        assert reg.object_ids() == ["a"]


class TestDefaultScene:
    def test_six_objects(self):
        reg = SceneRegistry.with_defaults()
        assert reg.object_ids() == list(DEFAULT_LAYOUT)
        assert len(reg) == 6

    def test_design_center_maps_to_origin(self):
        center, half = design_to_world(960 - 50, 540 - 50, 100, 100)
        np.testing.assert_allclose(center, [0, 0, 0])
        assert half[0] == pytest.approx(100 / 1920 * 10 / 2)

    def test_layout_y_is_up(self):
        # a box in the top half of the canvas lands above the origin
        center, _ = design_to_world(900, 100, 120, 100)
        assert center[1] > 0

    def test_objects_hit_at_their_centers(self):
        reg = SceneRegistry.with_defaults()
        for object_id in reg.object_ids():
            assert reg.query_object_at(reg.get_pose(object_id).position) == object_id
