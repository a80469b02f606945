from __future__ import annotations

import json

import pytest

from app import orchestrator, project
from app.project import ProjectPaths
from app.utils import slugify
from plan_generation.errors import GenerationError, PlanningError
from plan_generation.scene_converter import FALLBACK_ITEM


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    for name in ("INPUT_DIR", "SCRIPTS_DIR", "AUDIO_DIR", "TIMELINES_DIR", "LOGS_DIR"):
        monkeypatch.setattr(project, name, tmp_path / "data" / name.lower())
    monkeypatch.setattr(orchestrator, "ensure_runtime_directories", lambda: None)
    monkeypatch.setattr(orchestrator, "setup_logging", lambda *args, **kwargs: None)
    return tmp_path


@pytest.fixture
def source(workspace, sample_document_text):
    path = workspace / "guide.md"
    path.write_text(sample_document_text, encoding="utf-8")
    return path


PLANS = [
    {"sceneTitle": "Welcome", "sectionIndices": [0], "slideTypeHint": "title"},
    {"sceneTitle": "Install and use", "sectionIndices": [1, 2], "slideTypeHint": "steps"},
]

TITLE_SCENE = {
    "sceneTitle": "Welcome",
    "slideType": "title",
    "slideData": {"title": "Getting Started", "subtitle": "A short tour"},
    "lines": [{"speaker": "left", "text": "Welcome!"}, {"speaker": "right", "text": "Let's go."}],
    "transition": "fade",
}


def test_pipeline_writes_script(source, dummy_generator_factory):
    generator = dummy_generator_factory([PLANS, TITLE_SCENE, GenerationError("timeout")])

    paths = orchestrator.run_pipeline(source, slug="Guide Run", generator=generator)

    assert paths.slug == "guide-run"
    assert paths.input_copy.read_text(encoding="utf-8") == source.read_text(encoding="utf-8")
    script = json.loads(paths.script_json.read_text(encoding="utf-8"))
    assert script["title"] == "Getting Started"
    assert script["description"] == "A short tour of the tool"
    assert [scene["title"] for scene in script["scenes"]] == ["Welcome", "Install and use"]
    assert script["scenes"][0]["slide"] == {"type": "title", "title": "Getting Started", "subtitle": "A short tour"}
    assert script["scenes"][1]["slide"]["items"] == [FALLBACK_ITEM]
    assert len(generator.calls) == 3


def test_pipeline_respects_max_scenes(source, dummy_generator_factory):
    generator = dummy_generator_factory([PLANS, TITLE_SCENE])

    paths = orchestrator.run_pipeline(source, slug="short", max_scenes=1, generator=generator)

    script = json.loads(paths.script_json.read_text(encoding="utf-8"))
    assert len(script["scenes"]) == 1


def test_dry_run_prints_planning_prompt(source, dummy_generator_factory, capsys):
    generator = dummy_generator_factory([])

    paths = orchestrator.run_pipeline(source, slug="dry", dry_run=True, generator=generator)

    assert "[2] (H2) Usage" in capsys.readouterr().out
    assert generator.calls == []
    assert not paths.script_json.exists()


def test_planning_failure_is_fatal(source, dummy_generator_factory):
    generator = dummy_generator_factory([{"scenes": []}])
    with pytest.raises(PlanningError):
        orchestrator.run_pipeline(source, slug="empty", generator=generator)


def test_main_reports_missing_source(workspace):
    assert orchestrator.main(["--source", str(workspace / "missing.md")]) == 1


def test_main_reports_pipeline_errors(source, monkeypatch):
    def unavailable(provider=None, model_name=None):
        raise RuntimeError("Missing GEMINI_API_KEY")

    monkeypatch.setattr(orchestrator, "build_text_generator", unavailable)
    assert orchestrator.main(["--source", str(source), "--slug", "nokey"]) == 1


def test_project_paths_follow_slug(workspace):
    paths = ProjectPaths.from_slug("demo", workspace / "notes.txt")
    assert paths.input_copy.name == "demo.txt"
    assert paths.script_json.name == "demo.json"
    assert paths.audio_manifest.parts[-2:] == ("demo", "manifest.json")
    assert paths.as_dict()["log_file"].endswith("demo.log")


def test_slugify():
    assert slugify("  My Deck_v2!! ") == "my-deck-v2"
    assert slugify("???") == "project"


def test_main_reports_planning_errors(source, monkeypatch, dummy_generator_factory):
    generator = dummy_generator_factory([{"scenes": []}])
    monkeypatch.setattr(orchestrator, "build_text_generator", lambda provider=None, model_name=None: generator)
    assert orchestrator.main(["--source", str(source), "--slug", "noplan"]) == 1
