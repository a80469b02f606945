"""
Repairs raw scene conversions and assembles them into a canonical `Script`.

Every repair is deterministic and non-fatal: unknown slide types fall back to
"list", unusable diagrams, transitions and slide fields are dropped, and
scenes without dialogue get a single line reading their title. Whatever
still fails schema validation afterwards is a bug in this module and is
raised as `AssemblyError`.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from pydantic import ValidationError

from md_converter.models import Document

from .errors import AssemblyError
from .models import BlockConversion
from .script_schema import (
    DIAGRAM_ADAPTER,
    DIAGRAM_TYPES,
    SLIDE_TYPES,
    TRANSITION_TYPES,
    Line,
    SceneSlide,
    Script,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_SLIDE_TYPE = "list"
DEFAULT_SPEAKER = "left"

# Wire alias -> attribute name, so snake_case keys sent by a model are dropped too.
_SLIDE_FIELD_NAMES = {field.alias or name: name for name, field in SceneSlide.model_fields.items()}


def _resolve_scene_title(conversion: BlockConversion, index: int) -> str:
    if conversion.scene_title:
        return conversion.scene_title
    data_title = conversion.slide_data.get("title")
    if isinstance(data_title, str) and data_title:
        return data_title
    return f"Scene {index + 1}"


def _resolve_slide_type(conversion: BlockConversion, index: int) -> str:
    slide_type = conversion.slide_type
    if slide_type in SLIDE_TYPES:
        return slide_type
    LOGGER.warning("[Scene %d] Invalid slideType %r, falling back to %r", index, slide_type, DEFAULT_SLIDE_TYPE)
    return DEFAULT_SLIDE_TYPE


def _diagram_problem(diagram: Any) -> str | None:
    if not isinstance(diagram, dict):
        return "diagram is not an object"
    if diagram.get("type") not in DIAGRAM_TYPES:
        return f"invalid diagram type {diagram.get('type')!r}"
    try:
        DIAGRAM_ADAPTER.validate_python(diagram)
    except ValidationError as exc:
        return f"diagram '{diagram['type']}' does not match its schema ({exc.error_count()} errors)"
    return None


def _sanitize_slide_data(slide_data: Dict[str, Any], slide_type: str, index: int) -> Dict[str, Any]:
    data = {key: value for key, value in slide_data.items() if key != "type"}

    if "diagram" in data:
        problem = _diagram_problem(data["diagram"])
        if problem:
            LOGGER.warning("[Scene %d] %s, removing diagram", index, problem)
            del data["diagram"]

    try:
        SceneSlide.model_validate({**data, "type": slide_type})
    except ValidationError as exc:
        invalid_keys = {str(error["loc"][0]) for error in exc.errors() if error["loc"]}
        for alias in sorted(invalid_keys):
            for key in (alias, _SLIDE_FIELD_NAMES.get(alias)):
                if key in data:
                    LOGGER.warning("[Scene %d] Dropping invalid slide field %r", index, key)
                    del data[key]
    return data


def _resolve_transition(conversion: BlockConversion, index: int) -> str | None:
    transition = conversion.transition
    if transition is None or transition in TRANSITION_TYPES:
        return transition
    LOGGER.warning("[Scene %d] Invalid transition %r, removing it", index, transition)
    return None


def sanitize_conversion(conversion: BlockConversion, index: int) -> BlockConversion:
    """
    Repairs one raw conversion. `index` is the zero-based scene position,
    used for the fallback title and log messages.

    Sanitizing an already-valid conversion returns an equal conversion.
    """
    scene_title = _resolve_scene_title(conversion, index)
    slide_type = _resolve_slide_type(conversion, index)
    slide_data = _sanitize_slide_data(conversion.slide_data, slide_type, index)
    lines = list(conversion.lines) or [Line(speaker=DEFAULT_SPEAKER, text=scene_title)]

    return BlockConversion(
        scene_title=scene_title,
        slide_type=slide_type,
        slide_data=slide_data,
        lines=lines,
        transition=_resolve_transition(conversion, index),
    )


def _scene_payload(conversion: BlockConversion) -> Dict[str, Any]:
    scene: Dict[str, Any] = {
        "title": conversion.scene_title,
        "slide": {**conversion.slide_data, "type": conversion.slide_type},
        "lines": [line.model_dump(by_alias=True, exclude_none=True) for line in conversion.lines],
    }
    if conversion.transition is not None:
        scene["transition"] = conversion.transition
    return scene


def assemble_script(document: Document, conversions: Sequence[BlockConversion]) -> Script:
    """
    Builds the canonical script from the parsed document and the per-scene
    conversions, in plan order.

    Raises:
        AssemblyError: If the sanitized script still fails validation.
    """
    scenes: List[Dict[str, Any]] = [
        _scene_payload(sanitize_conversion(conversion, index))
        for index, conversion in enumerate(conversions)
    ]
    payload: Dict[str, Any] = {
        "title": document.title,
        "description": document.summary or document.frontmatter.get("description") or None,
        "scenes": scenes,
    }
    try:
        return Script.model_validate(payload)
    except ValidationError as exc:
        raise AssemblyError(
            f"Assembled script failed validation with {exc.error_count()} errors: {exc}",
            errors=exc.errors(include_url=False),
        ) from exc
