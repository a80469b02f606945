from __future__ import annotations

import json

import pytest

from app.timing import (
    AudioManifest,
    LineTiming,
    SceneTiming,
    TimingOptions,
    calculate_script_timings,
    calculate_timings,
    get_active_line_index,
    main,
)
from plan_generation.script_schema import Script


def _manifest(*entries: tuple[int, int, int]) -> AudioManifest:
    return AudioManifest.model_validate(
        {
            "fps": 30,
            "files": [
                {
                    "scene": scene,
                    "line": line,
                    "speaker": "left",
                    "text": "x",
                    "path": f"audio/{scene}-{line}.wav",
                    "durationSeconds": frames / 30,
                    "durationFrames": frames,
                }
                for scene, line, frames in entries
            ],
        }
    )


def test_default_durations_and_buffers():
    timeline = calculate_timings(2, [2, 1])
    first, second = timeline.scenes
    assert (first.start_frame, first.duration_frames) == (0, 195)
    assert (second.start_frame, second.duration_frames) == (195, 105)
    assert timeline.total_frames == 300
    assert [line.start_frame for line in first.lines] == [0, 90]
    assert all(line.audio_path is None for line in first.lines)


def test_manifest_durations_are_used():
    timeline = calculate_timings(1, [2], _manifest((0, 0, 60), (0, 1, 120)))
    [scene] = timeline.scenes
    assert scene.duration_frames == 195
    assert [line.start_frame for line in scene.lines] == [0, 60]
    assert scene.lines[1].audio_path == "audio/0-1.wav"


def test_zero_duration_entry_falls_back_to_default():
    timeline = calculate_timings(1, [1], _manifest((0, 0, 0)))
    line = timeline.scenes[0].lines[0]
    assert line.duration_frames == 90
    assert line.audio_path == "audio/0-0.wav"


def test_first_manifest_entry_wins():
    timeline = calculate_timings(1, [1], _manifest((0, 0, 40), (0, 0, 70)))
    assert timeline.scenes[0].lines[0].duration_frames == 40


def test_line_gap_is_added_between_lines_only():
    options = TimingOptions(line_gap_frames=10, scene_buffer_frames=0, default_line_frames=30)
    timeline = calculate_timings(1, [3], options=options)
    [scene] = timeline.scenes
    assert [line.start_frame for line in scene.lines] == [0, 40, 80]
    assert scene.duration_frames == 110


def test_empty_scenes_take_only_the_buffer():
    timeline = calculate_timings(3, [0, 1])
    assert [scene.duration_frames for scene in timeline.scenes] == [15, 105, 15]
    assert [scene.start_frame for scene in timeline.scenes] == [0, 15, 120]
    assert timeline.total_frames == 135


def test_scheduling_is_deterministic():
    manifest = _manifest((0, 0, 33), (1, 0, 44))
    assert calculate_timings(2, [1, 2], manifest) == calculate_timings(2, [1, 2], manifest)


@pytest.mark.parametrize("frame, expected", [(0, 0), (89, 0), (90, 1), (500, 1), (-5, 0)])
def test_active_line_index(frame, expected):
    timing = calculate_timings(1, [2]).scenes[0]
    assert get_active_line_index(timing, frame) == expected


def test_active_line_index_without_lines():
    assert get_active_line_index(SceneTiming(scene_index=0, start_frame=0, duration_frames=15), 10) == 0


def test_script_timings_use_line_counts():
    script = Script.model_validate(
        {
            "title": "T",
            "scenes": [
                {"title": "A", "slide": {"type": "title"}, "lines": [{"speaker": "left", "text": "a"}]},
                {
                    "title": "B",
                    "slide": {"type": "ending"},
                    "lines": [{"speaker": "left", "text": "b"}, {"speaker": "right", "text": "c"}],
                },
            ],
        }
    )
    timeline = calculate_script_timings(script)
    assert [len(scene.lines) for scene in timeline.scenes] == [1, 2]
    assert timeline.total_frames == 105 + 195


def test_timeline_dict_uses_camel_case():
    timeline = calculate_timings(1, [1], _manifest((0, 0, 45)))
    assert timeline.as_dict() == {
        "scenes": [
            {
                "sceneIndex": 0,
                "startFrame": 0,
                "durationFrames": 60,
                "lines": [{"lineIndex": 0, "startFrame": 0, "durationFrames": 45, "audioPath": "audio/0-0.wav"}],
            }
        ],
        "totalFrames": 60,
    }
    assert LineTiming(line_index=0, start_frame=0, duration_frames=90).as_dict() == {
        "lineIndex": 0,
        "startFrame": 0,
        "durationFrames": 90,
    }


def test_cli_writes_timeline(tmp_path, monkeypatch):
    monkeypatch.delenv("LINE_GAP_FRAMES", raising=False)
    monkeypatch.delenv("SCENE_BUFFER_FRAMES", raising=False)
    monkeypatch.delenv("DEFAULT_LINE_FRAMES", raising=False)
    script_path = tmp_path / "script.json"
    script_path.write_text(
        json.dumps(
            {
                "title": "T",
                "scenes": [
                    {
                        "title": "A",
                        "slide": {"type": "title"},
                        "lines": [{"speaker": "left", "text": "a"}, {"speaker": "right", "text": "b"}],
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    manifest_path = tmp_path / "manifest.json"
    manifest_path.write_text(json.dumps(_manifest((0, 0, 60)).model_dump(by_alias=True)), encoding="utf-8")
    output_path = tmp_path / "timeline.json"

    exit_code = main(
        [
            "--script",
            str(script_path),
            "--manifest",
            str(manifest_path),
            "--output",
            str(output_path),
            "--line-gap",
            "5",
        ]
    )

    assert exit_code == 0
    timeline = json.loads(output_path.read_text(encoding="utf-8"))
    assert timeline["totalFrames"] == 60 + 5 + 90 + 15
    assert timeline["scenes"][0]["lines"][1]["startFrame"] == 65


def test_cli_reports_missing_script(tmp_path):
    assert main(["--script", str(tmp_path / "missing.json")]) == 1
