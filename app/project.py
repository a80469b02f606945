from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict

from .config import AUDIO_DIR, INPUT_DIR, LOGS_DIR, SCRIPTS_DIR, TIMELINES_DIR


@dataclass
class ProjectPaths:
    slug: str
    source_document: Path
    input_copy: Path
    script_json: Path
    audio_manifest: Path
    timeline_json: Path
    log_file: Path

    @classmethod
    def from_slug(cls, slug: str, source_document: Path) -> "ProjectPaths":
        suffix = source_document.suffix or ".md"
        return cls(
            slug=slug,
            source_document=source_document,
            input_copy=INPUT_DIR / f"{slug}{suffix}",
            script_json=SCRIPTS_DIR / f"{slug}.json",
            audio_manifest=AUDIO_DIR / slug / "manifest.json",
            timeline_json=TIMELINES_DIR / f"{slug}.json",
            log_file=LOGS_DIR / f"{slug}.log",
        )

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {key: str(value) if isinstance(value, Path) else value for key, value in data.items()}
