"""gesture-interaction CLI.

Usage:
    gesture-interaction config     Write the default configuration as YAML
    gesture-interaction replay     Run a recorded session through the pipeline
    gesture-interaction record     Record labelled hands from the camera
    gesture-interaction live       Drive the default scene from the camera
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")
from typing import Optional

from gesture_interaction.config import ConfigError, EngineConfig

app = typer.Typer(
    name="gesture-interaction",
    help="🤏 Pinch, drag, rotate and scale objects with your hands.",
    add_completion=False,
)


@app.callback()
def setup(
    log_level: str = typer.Option("warning", help="Log level (debug, info, warning, error)"),
):
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


def _load_config(path: Optional[str]) -> EngineConfig:
    if path is None:
        return EngineConfig()
    try:
        return EngineConfig.from_yaml(path)
    except (OSError, ConfigError) as e:
        typer.echo(f"❌ Could not load config: {e}", err=True)
        raise typer.Exit(1)


def _format_event(event) -> str:
    side = f" [{event.side.value}]" if event.side is not None else ""
    target = f" {event.object_id}" if event.object_id is not None else ""
    value = f" ({event.value:.2f})" if event.value is not None else ""
    return f"{event.timestamp:8.3f}s  {event.kind}{side}{target}{value}"


@app.command()
def config(
    output: Optional[str] = typer.Option(None, "-o", "--output", help="Write to this file instead of stdout"),
):
    """Write the default configuration as YAML."""
    import yaml

    defaults = EngineConfig()
    if output:
        defaults.to_yaml(output)
        typer.echo(f"💾 Saved to: {output}")
    else:
        typer.echo(yaml.dump(defaults.to_dict(), default_flow_style=False, sort_keys=False))


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to config YAML"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier"),
    realtime: bool = typer.Option(False, help="Play at original timing"),
):
    """Replay a recorded session through the pipeline over the default scene."""
    from gesture_interaction.pipeline import InteractionPipeline
    from gesture_interaction.recorder import SessionPlayer

    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    try:
        player = SessionPlayer.load(path)
    except ValueError as e:
        typer.echo(f"❌ Could not read recording: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"▶️  Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")

    pipeline = InteractionPipeline(config=_load_config(config_path))
    event_count = 0

    def on_event(event):
        nonlocal event_count
        event_count += 1
        typer.echo(f"   {_format_event(event)}")

    pipeline.on_event(on_event)

    frames = player.play_realtime(speed=speed) if realtime else player.play()
    for frame in frames:
        pipeline.process(frame.hands, timestamp=frame.timestamp)

    typer.echo(f"\n✅ Replay complete. {event_count} events.")
    for object_id in pipeline.registry.object_ids():
        pose = pipeline.registry.get_pose(object_id)
        x, y, z = pose.position
        typer.echo(f"   {object_id:8s} pos=({x:+.2f}, {y:+.2f}, {z:+.2f}) scale={pose.scale:.2f}")


@app.command()
def record(
    output: str = typer.Option("recording.json", "-o", help="Output file path"),
    duration: float = typer.Option(0, help="Recording duration in seconds (0 = until Ctrl+C)"),
    camera: int = typer.Option(0, help="Camera device index"),
):
    """Record labelled hand landmarks from the camera."""
    import cv2
    from gesture_interaction.detector import HandDetector
    from gesture_interaction.recorder import SessionRecorder

    cap = cv2.VideoCapture(camera)
    if not cap.isOpened():
        typer.echo(f"❌ Could not open camera {camera}", err=True)
        raise typer.Exit(1)

    detector = HandDetector()
    recorder = SessionRecorder()

    typer.echo(f"🎥 Recording from camera {camera}...")
    typer.echo("   Press Ctrl+C to stop")
    recorder.start()
    start = time.monotonic()

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                continue

            frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            hands = detector.detect(frame_rgb)
            recorder.add_frame(hands)

            if recorder.frame_count % 30 == 0:
                elapsed = time.monotonic() - start
                typer.echo(f"\r   Frames: {recorder.frame_count} | Duration: {elapsed:.1f}s | Hands: {len(hands)}", nl=False)

            if duration > 0 and (time.monotonic() - start) >= duration:
                break
    except KeyboardInterrupt:
        pass
    finally:
        recorder.stop()
        cap.release()
        detector.close()

    typer.echo(f"\n\n📼 Recorded {recorder.frame_count} frames ({recorder.duration:.1f}s)")
    recorder.save(output)
    typer.echo(f"💾 Saved to: {output}")


@app.command()
def live(
    camera: int = typer.Option(0, help="Camera device index"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to config YAML"),
):
    """Drive the default scene from the camera, printing events as they happen."""
    import cv2
    from gesture_interaction.detector import HandDetector
    from gesture_interaction.pipeline import InteractionPipeline

    cap = cv2.VideoCapture(camera)
    if not cap.isOpened():
        typer.echo(f"❌ Could not open camera {camera}", err=True)
        raise typer.Exit(1)

    pipeline = InteractionPipeline(config=_load_config(config_path), detector=HandDetector())
    pipeline.on_event(lambda event: typer.echo(f"   {_format_event(event)}"))

    typer.echo(f"🎥 Tracking hands on camera {camera}. Press Ctrl+C to stop")
    try:
        with pipeline:
            while True:
                ret, frame = cap.read()
                if not ret:
                    continue
                frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                pipeline.process_frame(frame_rgb)
    except KeyboardInterrupt:
        pass
    finally:
        cap.release()

    stats = pipeline.stats
    typer.echo(f"\n📊 {stats.total_frames} frames, {stats.total_events} events, {stats.avg_latency_ms:.2f} ms/frame")


def main():
    app()


if __name__ == "__main__":
    main()
