from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ..models import ValidationIssue

MIN_LINES_PER_SCENE = 2
MAX_LINES_PER_SCENE = 8
OPENING_SLIDE_TYPE = "title"
CLOSING_SLIDE_TYPE = "ending"

ITEM_SLIDE_TYPES = ("list", "steps", "checklist", "tips", "warning", "agenda", "summary", "process")
COLUMN_SLIDE_TYPES = ("comparison", "two-column", "before-after")

REQUIRED_SLIDE_FIELDS: Dict[str, tuple[str, ...]] = {
    "table": ("tableHeaders", "tableRows"),
    "quote": ("quote",),
    "definition": ("definition",),
    "stat": ("statValue",),
    "code": ("code",),
    "qa": ("question", "answer"),
    "metrics": ("metrics",),
    "icon-list": ("iconItems",),
    **{slide_type: ("items",) for slide_type in ITEM_SLIDE_TYPES},
    **{slide_type: ("leftColumn", "rightColumn") for slide_type in COLUMN_SLIDE_TYPES},
}


def _warning(code: str, message: str, scene_index: int) -> ValidationIssue:
    return ValidationIssue(code=code, message=message, severity="warning", context={"scene": scene_index})


def validate_script_rules(script: Dict[str, Any]) -> Iterable[ValidationIssue]:
    """Editorial checks on a script that already passes the schema. Warnings only."""
    issues: List[ValidationIssue] = []
    scenes = script.get("scenes") if isinstance(script, dict) else None
    if not isinstance(scenes, list) or not scenes:
        return issues

    for index, scene in enumerate(scenes):
        if not isinstance(scene, dict):
            continue
        lines = scene.get("lines") or []
        slide = scene.get("slide") or {}

        if not lines:
            issues.append(_warning("rule.dialogue.empty", "Scene has no spoken lines", index))
        else:
            if lines[0].get("speaker") != "left":
                issues.append(
                    _warning("rule.dialogue.first_speaker", "Dialogue should open with the left speaker", index)
                )
            if not MIN_LINES_PER_SCENE <= len(lines) <= MAX_LINES_PER_SCENE:
                issues.append(
                    _warning(
                        "rule.dialogue.length",
                        f"Scene has {len(lines)} lines, expected {MIN_LINES_PER_SCENE}-{MAX_LINES_PER_SCENE}",
                        index,
                    )
                )

        slide_type = slide.get("type")
        missing = [field for field in REQUIRED_SLIDE_FIELDS.get(slide_type, ()) if not slide.get(field)]
        if missing:
            issues.append(
                _warning(
                    "rule.slide.missing_fields",
                    f"Slide '{slide_type}' is missing {', '.join(missing)}",
                    index,
                )
            )

    first_type = (scenes[0].get("slide") or {}).get("type") if isinstance(scenes[0], dict) else None
    if first_type != OPENING_SLIDE_TYPE:
        issues.append(
            _warning("rule.structure.opening", f"First scene uses '{first_type}' instead of '{OPENING_SLIDE_TYPE}'", 0)
        )
    last_index = len(scenes) - 1
    last_type = (scenes[-1].get("slide") or {}).get("type") if isinstance(scenes[-1], dict) else None
    if last_type != CLOSING_SLIDE_TYPE:
        issues.append(
            _warning(
                "rule.structure.closing",
                f"Last scene uses '{last_type}' instead of '{CLOSING_SLIDE_TYPE}'",
                last_index,
            )
        )

    return issues
