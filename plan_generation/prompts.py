"""Prompt builders for the planning and per-scene conversion calls."""
from __future__ import annotations

from typing import List, Sequence

from md_converter.markdown_parser import summarize_section
from md_converter.models import (
    Blockquote,
    Code,
    ContentElement,
    Demo,
    Document,
    FlatSection,
    ListBlock,
    Paragraph,
    Section,
    Table,
)

from .models import ScenePlan
from .script_schema import DIAGRAM_TYPES, SLIDE_TYPES

_SLIDE_TYPE_LIST = ", ".join(SLIDE_TYPES)
_DIAGRAM_TYPE_LIST = ", ".join(DIAGRAM_TYPES)

PLANNING_SYSTEM_INSTRUCTION = f"""You split documents into scenes of a narrated slide video.

## Input
A list of document sections: index, heading level, title and a content digest.

## Output
{{
  "scenes": [
    {{"sceneTitle": "...", "sectionIndices": [0, 1], "slideTypeHint": "title", "notes": "..."}}
  ]
}}

## Rules
- Aim for 5 to 20 scenes.
- Merge small sections (overviews, short notes) into one scene.
- Split large sections (for example ten or more steps) into several scenes.
- Prefer "title" for the first scene and "ending" for the last one.
- Group FAQ or Q&A sections into "qa" scenes.
- Skip sections that only have a heading.
- When numbers, processes or relationships would read better as a chart,
  say so in notes, e.g. "diagram: bar".

## Slide types
{_SLIDE_TYPE_LIST}

## Diagram types (optional)
{_DIAGRAM_TYPE_LIST}
"""

CONVERSION_SYSTEM_INSTRUCTION = f"""You convert one scene of a document into a slide and a two-person dialogue.

## Tasks
1. Pick the best slide type.
2. Fill the slide data fields that type needs.
3. Turn the content into a natural dialogue between two speakers.

## Slide data by type
- table: tableHeaders (string[]), tableRows (string[][])
- list, steps, checklist, tips, warning, agenda, summary, process, image-text: title, items (string[])
- title, bridge, highlight: title, subtitle
- ending: title, subtitle, ctaText
- quote: quote, attribution
- definition: title, definition
- stat: title, statValue, statLabel
- code: title, code, language
- qa: question, answer
- comparison, two-column, before-after: title, leftColumn {{title, items}}, rightColumn {{title, items}}
- profile: title, profileName, profileRole, items
- metrics: title, metrics [{{label, value, change?}}]
- icon-list: title, iconItems [{{icon, text}}]
- gallery: title

Allowed slide types: {_SLIDE_TYPE_LIST}

## Diagrams (optional)
slideData may carry "diagram": {{"type": ..., ...}} with one of: {_DIAGRAM_TYPE_LIST}.
Only add a diagram when numeric or structural content benefits from it.
Matrix diagrams need exactly four quadrants; venn diagrams two or three sets.

## Dialogue
- "left" presents the content, "right" asks questions, reacts and summarises.
- 2 to 8 lines per scene, always starting with "left".
- Quoted text marked [SPOKEN] is what the presenter intends to say; keep its meaning.
- Without spoken text, build the dialogue from the paragraphs, lists and tables.

## Output
{{
  "sceneTitle": "...",
  "slideType": "...",
  "slideData": {{"title": "..."}},
  "lines": [{{"speaker": "left", "text": "..."}}, {{"speaker": "right", "text": "..."}}],
  "transition": "fade"
}}
Do not put a "type" field inside slideData. Use "fade" as the transition unless another fits better.
"""


def build_planning_prompt(document: Document, flat_sections: Sequence[FlatSection]) -> str:
    """One summary line per flattened section, headed by the document title and summary."""
    section_lines: List[str] = []
    for entry in flat_sections:
        section = entry.section
        title = section.title or "(untitled)"
        section_lines.append(
            f"[{entry.index}] (H{section.level}) {title} -> {summarize_section(section)}"
        )
    parts = [
        f"Document: {document.title}",
        f"Summary: {document.summary or '(none)'}",
        "",
        "Sections:",
        *section_lines,
    ]
    return "\n".join(parts)


def render_element(element: ContentElement) -> str:
    """Renders one content element as prompt text."""
    if isinstance(element, Blockquote):
        return f"[SPOKEN]\n{element.text}\n\n"
    if isinstance(element, Table):
        rows = "".join(f"  {' | '.join(row)}\n" for row in element.rows)
        return f"[TABLE]\nHeaders: {' | '.join(element.headers)}\n{rows}\n"
    if isinstance(element, ListBlock):
        bullets = "\n".join(f"- {item}" for item in element.items)
        return f"[LIST]\n{bullets}\n\n"
    if isinstance(element, Demo):
        return f"[DEMO] {element.text}\n\n"
    if isinstance(element, Code):
        return f"[CODE] ({element.language})\n```{element.language}\n{element.text}\n```\n\n"
    if isinstance(element, Paragraph):
        return f"{element.text}\n\n"
    return ""


def build_scene_prompt(
    sections: Sequence[Section],
    plan: ScenePlan,
    *,
    document_title: str,
    total_scenes: int,
    scene_position: int,
) -> str:
    """
    Builds the user prompt for converting one planned scene.

    Args:
        sections: The flattened section list the plan's indices refer to.
        plan: The scene plan being converted.
        document_title: Title of the source document.
        total_scenes: Number of planned scenes.
        scene_position: Zero-based position of this scene.
    """
    prompt = "## Scene to convert\n\n"
    prompt += f"Document: {document_title}\n"
    prompt += f"Scene {scene_position + 1} of {total_scenes}\n\n"
    prompt += f"Suggested slide type: {plan.slide_type_hint}\n"
    if plan.notes:
        prompt += f"Notes: {plan.notes}\n"
    prompt += "\n"

    for index in plan.section_indices:
        if index < 0 or index >= len(sections):
            continue
        section = sections[index]
        prompt += f"### {section.title}\n\n"
        for element in section.content:
            prompt += render_element(element)

    if scene_position == 0:
        prompt += '\nThis is the first scene of the presentation. Consider slideType "title".\n'
    if scene_position == total_scenes - 1:
        prompt += '\nThis is the last scene of the presentation. Consider slideType "ending".\n'
    return prompt
