from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import List

from md_converter import flatten_sections, parse_document
from plan_generation.assembler import assemble_script
from plan_generation.prompts import build_planning_prompt
from plan_generation.scene_converter import SceneConverter
from plan_generation.scene_planner import ScenePlanner
from plan_generation.script_schema import dump_script
from plan_generation.text_generator import PROVIDERS, TextGenerator, build_text_generator
from plan_generation.validators import validate_script

from .config import DEFAULT_SOURCE_DOCUMENT, ensure_runtime_directories
from .logging_utils import setup_logging
from .project import ProjectPaths
from .utils import dump_json, slugify, timestamp_slug

LOGGER = logging.getLogger(__name__)


def _copy_source(project: ProjectPaths) -> None:
    project.input_copy.parent.mkdir(parents=True, exist_ok=True)
    if project.source_document.resolve() != project.input_copy.resolve():
        shutil.copy2(project.source_document, project.input_copy)
    else:
        LOGGER.info("Source already located at %s, skipping copy.", project.input_copy)


def run_pipeline(
    source: Path,
    *,
    slug: str | None = None,
    provider: str | None = None,
    model: str | None = None,
    max_scenes: int | None = None,
    dry_run: bool = False,
    log_level: str | None = None,
    generator: TextGenerator | None = None,
) -> ProjectPaths:
    """
    Parse `source`, plan and convert its scenes, then write the assembled
    script to `project.script_json`. With `dry_run` only the planning prompt
    is printed and no text generator is contacted.
    """
    if not source.exists():
        raise FileNotFoundError(f"Source document not found: {source}")

    ensure_runtime_directories()
    slug = slugify(slug or timestamp_slug(source.stem))
    project = ProjectPaths.from_slug(slug, source)
    setup_logging(project.log_file, level=log_level)

    LOGGER.info("=== Pipeline start | slug=%s ===", project.slug)
    _copy_source(project)
    document = parse_document(source.read_text(encoding="utf-8"))
    LOGGER.info("Parsed '%s' (%d top-level sections)", document.title, len(document.sections))

    if dry_run:
        print(build_planning_prompt(document, flatten_sections(document.sections)))
        LOGGER.info("Dry run: planning prompt printed, no generation call made.")
        return project

    generator = generator or build_text_generator(provider, model)
    LOGGER.info("=== Planning scenes (%s) ===", generator.name)
    plans = ScenePlanner(generator).plan(document)

    LOGGER.info("=== Converting %d scenes ===", len(plans))
    conversions = SceneConverter(generator).convert_all(document, plans, max_scenes=max_scenes)

    script = assemble_script(document, conversions)
    payload = dump_script(script)
    report = validate_script(payload)
    for issue in report.issues:
        LOGGER.warning("[%s] %s %s", issue.code, issue.message, issue.context)

    dump_json(payload, project.script_json)
    LOGGER.info("Script written to %s (%d scenes)", project.script_json, len(script.scenes))
    LOGGER.info("=== Pipeline completed | slug=%s ===", project.slug)
    return project


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert a markdown document into a scene script.")
    parser.add_argument(
        "--source",
        type=Path,
        default=DEFAULT_SOURCE_DOCUMENT,
        help="Source markdown document. Default: %(default)s",
    )
    parser.add_argument("--slug", help="Optional slug (default: auto based on timestamp).")
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        help="Text generation provider (default: LLM_PROVIDER or gemini).",
    )
    parser.add_argument("--model", help="Model override for the selected provider.")
    parser.add_argument(
        "--max-scenes",
        type=int,
        help="Convert at most this many planned scenes.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the planning prompt (no generation call).",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Override APP_LOG_LEVEL for this run.",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        run_pipeline(
            args.source,
            slug=args.slug,
            provider=args.provider,
            model=args.model,
            max_scenes=args.max_scenes,
            dry_run=args.dry_run,
            log_level=args.log_level,
        )
    except (FileNotFoundError, RuntimeError) as exc:
        setup_logging(level=args.log_level)
        LOGGER.error("Pipeline failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
