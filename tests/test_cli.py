"""Tests for the command-line interface (camera commands excluded)."""

import yaml
from typer.testing import CliRunner

from gesture_interaction.cli import app
from gesture_interaction.config import EngineConfig
from gesture_interaction.recorder import SessionRecorder

from hands import open_palm, pinch_hand

runner = CliRunner()


def write_recording(path, frames):
    rec = SessionRecorder()
    rec.start(timestamp=0.0)
    for t, hands in frames:
        rec.add_frame(hands, timestamp=t)
    rec.stop()
    rec.save(path)


class TestConfigCommand:
    def test_prints_defaults(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert EngineConfig.from_dict(yaml.safe_load(result.output)) == EngineConfig()

    def test_writes_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        result = runner.invoke(app, ["config", "-o", str(path)])
        assert result.exit_code == 0
        assert EngineConfig.from_yaml(path) == EngineConfig()


class TestReplayCommand:
    def test_replay_prints_events(self, tmp_path):
        path = tmp_path / "session.json"
        # the "t" object of the default scene covers the center of the view
        write_recording(path, [
            (0.0, [pinch_hand(at=(0.5, 0.5), pinching=False)]),
            (0.05, [pinch_hand(at=(0.5, 0.5), pinching=True)]),
            (0.25, [pinch_hand(at=(0.5, 0.5), pinching=False)]),
            (0.5, [open_palm()]),
        ])
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 0
        assert "Replay complete" in result.output
        assert "select t" in result.output

    def test_missing_recording(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_bad_recording(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text('{"version": 99, "frames": []}')
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1

    def test_bad_config(self, tmp_path):
        recording = tmp_path / "session.json"
        write_recording(recording, [])
        config = tmp_path / "config.yaml"
        config.write_text("nonsense: {}\n")
        result = runner.invoke(app, ["replay", str(recording), "--config", str(config)])
        assert result.exit_code == 1

    def test_bad_side_in_config(self, tmp_path):
        recording = tmp_path / "session.json"
        write_recording(recording, [])
        config = tmp_path / "config.yaml"
        config.write_text("interaction:\n  drag_side: Up\n")
        result = runner.invoke(app, ["replay", str(recording), "--config", str(config)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_frame_without_timestamp(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text('{"version": 1, "frames": [{"hands": []}]}')
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
