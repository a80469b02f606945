"""Group a parsed document's sections into an ordered list of scene plans."""
from __future__ import annotations

import json
import logging
from typing import Any, List

from pydantic import ValidationError

from md_converter.markdown_parser import flatten_sections
from md_converter.models import Document

from .errors import PlanningError
from .models import ScenePlan
from .prompts import PLANNING_SYSTEM_INSTRUCTION, build_planning_prompt
from .text_generator import TextGenerator

LOGGER = logging.getLogger(__name__)


def normalize_plan_response(result: Any) -> List[ScenePlan]:
    """
    Accepts either a bare array of plans or an object wrapping it under
    `scenes`, and validates each entry into a `ScenePlan`.

    Raises:
        PlanningError: If no array is found, it is empty, or none of its
                       entries is a usable plan.
    """
    scenes = result if isinstance(result, list) else None
    if scenes is None and isinstance(result, dict):
        scenes = result.get("scenes")

    if not isinstance(scenes, list) or not scenes:
        preview = json.dumps(result, ensure_ascii=False, default=str)[:200]
        raise PlanningError(f"Scene planning returned no scenes. Response: {preview}")

    plans: List[ScenePlan] = []
    for index, raw in enumerate(scenes):
        if not isinstance(raw, dict):
            LOGGER.warning("Skipping scene plan %d: expected an object, got %s", index, type(raw).__name__)
            continue
        try:
            plans.append(ScenePlan.model_validate(raw))
        except ValidationError as exc:
            LOGGER.warning("Skipping scene plan %d: %s", index, exc)

    if not plans:
        raise PlanningError("Scene planning returned no usable scene plans.")
    return plans


class ScenePlanner:
    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    def build_prompt(self, document: Document) -> str:
        return build_planning_prompt(document, flatten_sections(document.sections))

    def plan(self, document: Document) -> List[ScenePlan]:
        """
        Issues one planning call for `document`.
        Generation failures propagate as GenerationError; an unusable answer
        raises PlanningError. Both are fatal to the request.
        """
        prompt = self.build_prompt(document)
        result = self.generator.generate_structured(prompt, PLANNING_SYSTEM_INSTRUCTION)
        plans = normalize_plan_response(result)
        LOGGER.info("Planned %d scenes for '%s'", len(plans), document.title)
        return plans
