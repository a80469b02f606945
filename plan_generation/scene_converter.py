"""Convert planned scenes into raw slide + dialogue conversions, one call per scene."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from md_converter.markdown_parser import flatten_sections
from md_converter.models import Document, Section

from .errors import GenerationError
from .models import BlockConversion, ScenePlan
from .prompts import CONVERSION_SYSTEM_INSTRUCTION, build_scene_prompt
from .script_schema import Line
from .text_generator import TextGenerator

LOGGER = logging.getLogger(__name__)

FALLBACK_SLIDE_TYPE = "list"
FALLBACK_ITEM = "(add content manually)"
FALLBACK_TRANSITION = "fade"


def fallback_conversion(plan: ScenePlan) -> BlockConversion:
    """Deterministic stand-in used when a scene's conversion call fails."""
    return BlockConversion(
        scene_title=plan.scene_title,
        slide_type=FALLBACK_SLIDE_TYPE,
        slide_data={"title": plan.scene_title, "items": [FALLBACK_ITEM]},
        lines=[Line(speaker="left", text=plan.scene_title)],
        transition=FALLBACK_TRANSITION,
    )


class SceneConverter:
    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    def convert_scene(
        self,
        sections: Sequence[Section],
        plan: ScenePlan,
        *,
        document_title: str,
        total_scenes: int,
        scene_position: int,
    ) -> BlockConversion:
        """
        Runs one conversion call. Raises GenerationError when the call fails
        or its answer does not validate as a `BlockConversion`.
        """
        prompt = build_scene_prompt(
            sections,
            plan,
            document_title=document_title,
            total_scenes=total_scenes,
            scene_position=scene_position,
        )
        result = self.generator.generate_structured(prompt, CONVERSION_SYSTEM_INSTRUCTION)
        if not isinstance(result, dict):
            raise GenerationError(f"Expected a JSON object, got {type(result).__name__}")
        try:
            return BlockConversion.model_validate(result)
        except ValidationError as exc:
            raise GenerationError(f"Conversion does not match the expected shape: {exc}") from exc

    def convert_all(
        self,
        document: Document,
        plans: Sequence[ScenePlan],
        *,
        max_scenes: Optional[int] = None,
        should_continue: Optional[Callable[[int], bool]] = None,
    ) -> List[BlockConversion]:
        """
        Converts every plan in order, sequentially.

        A failed scene is replaced by `fallback_conversion`, so the result has
        one conversion per processed plan. Processing stops early, keeping the
        conversions done so far, after `max_scenes` plans or when
        `should_continue(index)` returns False.
        """
        sections = [entry.section for entry in flatten_sections(document.sections)]
        total = len(plans)
        conversions: List[BlockConversion] = []

        for index, plan in enumerate(plans):
            if max_scenes is not None and index >= max_scenes:
                LOGGER.info("Stopping after %d of %d scenes (max_scenes)", index, total)
                break
            if should_continue is not None and not should_continue(index):
                LOGGER.info("Stopping after %d of %d scenes (cancelled)", index, total)
                break

            LOGGER.info("[%d/%d] Converting: %s", index + 1, total, plan.scene_title)
            try:
                conversion = self.convert_scene(
                    sections,
                    plan,
                    document_title=document.title,
                    total_scenes=total,
                    scene_position=index,
                )
            except GenerationError as exc:
                LOGGER.warning("Scene %d conversion failed, using fallback list slide: %s", index, exc)
                conversion = fallback_conversion(plan)
            else:
                LOGGER.info(
                    "    -> %s: '%s' (%d lines)",
                    conversion.slide_type,
                    conversion.scene_title,
                    len(conversion.lines),
                )
            conversions.append(conversion)

        return conversions
