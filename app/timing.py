"""
Frame timeline scheduling for a script.

Scenes are laid out back to back on a global frame cursor; lines inside a
scene are laid out on a scene-local cursor. A line lasts as long as its
synthesized audio (from the audio manifest) or `default_line_frames` when no
audio is known. Scheduling is pure: the same script, manifest and options
always produce the same timeline.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from plan_generation.script_schema import Script

from .config import get_env_int
from .logging_utils import setup_logging
from .utils import dump_json, load_json

LOGGER = logging.getLogger(__name__)

DEFAULT_FPS = 30
DEFAULT_LINE_GAP_FRAMES = 0
DEFAULT_SCENE_BUFFER_FRAMES = 15
DEFAULT_LINE_FRAMES = 90


class AudioManifestEntry(BaseModel):
    """One synthesized line as recorded by the voice synthesis step."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    scene: int = Field(description="Zero-based scene index.")
    line: int = Field(description="Zero-based line index within the scene.")
    speaker: str = ""
    text: str = ""
    path: str = Field(description="Path of the synthesized audio file.")
    duration_seconds: float = 0.0
    duration_frames: int = Field(default=0, description="Audio length in frames, rounded up.")


class AudioManifest(BaseModel):
    fps: int = DEFAULT_FPS
    files: List[AudioManifestEntry] = Field(default_factory=list)

    def lookup(self) -> Dict[Tuple[int, int], AudioManifestEntry]:
        """Index entries by (scene, line). The first entry for a pair wins."""
        index: Dict[Tuple[int, int], AudioManifestEntry] = {}
        for entry in self.files:
            index.setdefault((entry.scene, entry.line), entry)
        return index


@dataclass(frozen=True)
class TimingOptions:
    line_gap_frames: int = DEFAULT_LINE_GAP_FRAMES
    scene_buffer_frames: int = DEFAULT_SCENE_BUFFER_FRAMES
    default_line_frames: int = DEFAULT_LINE_FRAMES

    @classmethod
    def from_env(cls) -> "TimingOptions":
        return cls(
            line_gap_frames=get_env_int("LINE_GAP_FRAMES", DEFAULT_LINE_GAP_FRAMES),
            scene_buffer_frames=get_env_int("SCENE_BUFFER_FRAMES", DEFAULT_SCENE_BUFFER_FRAMES),
            default_line_frames=get_env_int("DEFAULT_LINE_FRAMES", DEFAULT_LINE_FRAMES),
        )


@dataclass(frozen=True)
class LineTiming:
    line_index: int
    start_frame: int
    duration_frames: int
    audio_path: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "lineIndex": self.line_index,
            "startFrame": self.start_frame,
            "durationFrames": self.duration_frames,
        }
        if self.audio_path is not None:
            data["audioPath"] = self.audio_path
        return data


@dataclass(frozen=True)
class SceneTiming:
    scene_index: int
    start_frame: int
    duration_frames: int
    lines: List[LineTiming] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "sceneIndex": self.scene_index,
            "startFrame": self.start_frame,
            "durationFrames": self.duration_frames,
            "lines": [line.as_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class Timeline:
    scenes: List[SceneTiming]
    total_frames: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "scenes": [scene.as_dict() for scene in self.scenes],
            "totalFrames": self.total_frames,
        }


def calculate_timings(
    scene_count: int,
    lines_per_scene: Sequence[int],
    manifest: AudioManifest | None = None,
    options: TimingOptions | None = None,
) -> Timeline:
    """
    Lays out `scene_count` scenes. `lines_per_scene[i]` is the number of
    lines in scene i; a missing count means an empty scene.

    A manifest entry with a zero duration is treated as missing.
    """
    options = options or TimingOptions()
    entries = manifest.lookup() if manifest else {}

    scenes: List[SceneTiming] = []
    current_frame = 0
    for scene_index in range(scene_count):
        line_count = lines_per_scene[scene_index] if scene_index < len(lines_per_scene) else 0
        lines: List[LineTiming] = []
        local_frame = 0

        for line_index in range(line_count):
            entry = entries.get((scene_index, line_index))
            duration = (entry.duration_frames if entry else 0) or options.default_line_frames
            lines.append(
                LineTiming(
                    line_index=line_index,
                    start_frame=local_frame,
                    duration_frames=duration,
                    audio_path=entry.path if entry else None,
                )
            )
            local_frame += duration
            if line_index < line_count - 1:
                local_frame += options.line_gap_frames

        scene_duration = local_frame + options.scene_buffer_frames
        scenes.append(
            SceneTiming(
                scene_index=scene_index,
                start_frame=current_frame,
                duration_frames=scene_duration,
                lines=lines,
            )
        )
        current_frame += scene_duration

    return Timeline(scenes=scenes, total_frames=current_frame)


def calculate_script_timings(
    script: Script,
    manifest: AudioManifest | None = None,
    options: TimingOptions | None = None,
) -> Timeline:
    return calculate_timings(
        len(script.scenes),
        [len(scene.lines) for scene in script.scenes],
        manifest,
        options,
    )


def get_active_line_index(timing: SceneTiming, frame: int) -> int:
    """Index of the line playing at scene-local `frame`; 0 before the first line."""
    for index in range(len(timing.lines) - 1, -1, -1):
        if frame >= timing.lines[index].start_frame:
            return index
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute the frame timeline of a script.")
    parser.add_argument("--script", type=Path, required=True, help="Path to script.json.")
    parser.add_argument("--manifest", type=Path, help="Optional audio manifest.json with line durations.")
    parser.add_argument("--output", type=Path, help="Where to write the timeline JSON (default: stdout).")
    parser.add_argument("--line-gap", type=int, help="Frames of silence between lines.")
    parser.add_argument("--scene-buffer", type=int, help="Frames appended to every scene.")
    return parser


def main(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging()

    if not args.script.exists():
        LOGGER.error("Script not found: %s", args.script)
        return 1
    try:
        script = Script.model_validate(load_json(args.script))
        manifest = None
        if args.manifest:
            if not args.manifest.exists():
                LOGGER.error("Audio manifest not found: %s", args.manifest)
                return 1
            manifest = AudioManifest.model_validate(load_json(args.manifest))
    except (json.JSONDecodeError, ValidationError) as exc:
        LOGGER.error("Invalid input: %s", exc)
        return 1

    defaults = TimingOptions.from_env()
    options = TimingOptions(
        line_gap_frames=defaults.line_gap_frames if args.line_gap is None else args.line_gap,
        scene_buffer_frames=defaults.scene_buffer_frames if args.scene_buffer is None else args.scene_buffer,
        default_line_frames=defaults.default_line_frames,
    )
    timeline = calculate_script_timings(script, manifest, options)
    LOGGER.info("Timeline: %d scenes, %d frames", len(timeline.scenes), timeline.total_frames)

    if args.output:
        dump_json(timeline.as_dict(), args.output)
        LOGGER.info("Timeline written to %s", args.output)
    else:
        print(json.dumps(timeline.as_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
