"""
This module turns arbitrary markdown-like text into a `Document`: the leading
frontmatter blocks are lifted into a flat metadata map, and the body is
scanned line by line into a tree of heading-delimited sections holding
classified content elements (paragraphs, quotes, tables, lists, demo
instructions and code).

The scanner never fails. Malformed input (unterminated frontmatter, headings
deeper than six levels, unclosed code fences) degrades into ordinary body
text or is dropped.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Tuple

from .models import (
    Blockquote,
    Code,
    Demo,
    Document,
    FlatSection,
    ListBlock,
    Paragraph,
    Section,
    Table,
)

LOGGER = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"
CODE_FENCE = "```"

FRONTMATTER_KEY_RE = re.compile(r"^([a-zA-Z_]\w*):\s*(.*)$")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
H1_RE = re.compile(r"^#\s+")
TABLE_SEPARATOR_RE = re.compile(r"^\|[\s\-:|]+\|$")
ORDERED_ITEM_RE = re.compile(r"^\d+\.\s+")
BULLET_ITEM_RE = re.compile(r"^[-*]\s+")
INDENTED_BULLET_RE = re.compile(r"^\s{2,}[-*]\s+")
DEMO_MARKER = "→"
DEMO_RE = re.compile(r"^→\s*")
BLOCKQUOTE_RE = re.compile(r"^>\s?")

PARAGRAPH_DIGEST_CHARS = 80
QUOTE_DIGEST_CHARS = 60


# ---------------------------------------------------------------------------
# Frontmatter
# ---------------------------------------------------------------------------


def extract_frontmatter(text: str) -> Tuple[Dict[str, str], str]:
    """
    Lifts every leading `---`-delimited block out of `text`.

    Blocks are processed in order, so a key repeated in a later block
    overrides the earlier scalar value. A block without a closing delimiter
    ends extraction and is left in the body untouched.

    Args:
        text: The raw document text.

    Returns:
        A tuple of the merged frontmatter map and the remaining body text.
    """
    frontmatter: Dict[str, str] = {}
    remaining = text
    while remaining.startswith(FRONTMATTER_DELIMITER):
        end = remaining.find(FRONTMATTER_DELIMITER, len(FRONTMATTER_DELIMITER))
        if end == -1:
            LOGGER.debug("Unterminated frontmatter block, keeping it as body text")
            break
        block = remaining[len(FRONTMATTER_DELIMITER):end].strip()
        _parse_frontmatter_block(block, frontmatter)
        remaining = remaining[end + len(FRONTMATTER_DELIMITER):].lstrip()
    return frontmatter, remaining


def _parse_frontmatter_block(block: str, target: Dict[str, str]) -> None:
    """Reads flat `key: value` pairs and `- item` lists into `target`."""
    current_key = ""
    for line in block.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        match = FRONTMATTER_KEY_RE.match(stripped)
        if match:
            current_key = match.group(1)
            value = match.group(2).strip()
            if value and not value.startswith("-"):
                target[current_key] = value
            continue

        # List items belong to the last key seen, joined as text.
        if stripped.startswith("- ") and current_key:
            item = stripped[2:].strip()
            if target.get(current_key):
                target[current_key] += ", " + item
            else:
                target[current_key] = item


def extract_first_heading(lines: Iterable[str]) -> str | None:
    """Returns the text of the first level-1 heading, if any."""
    for line in lines:
        if H1_RE.match(line) and not line.startswith("##"):
            return H1_RE.sub("", line).strip()
    return None


# ---------------------------------------------------------------------------
# Content classification
# ---------------------------------------------------------------------------


def classify_line(line: str, section: Section) -> None:
    """
    Classifies one non-heading, non-code line and appends it to `section`.

    Paragraph, blockquote, table and list lines merge into the section's last
    element when it has the same kind; demo lines always start a new element.
    """
    stripped = line.strip()

    if not stripped or stripped == FRONTMATTER_DELIMITER:
        return

    last = section.last_element

    if line.startswith("> ") or line == ">":
        text = BLOCKQUOTE_RE.sub("", line, count=1)
        if isinstance(last, Blockquote):
            last.text += "\n" + text
        else:
            section.content.append(Blockquote(text=text))
        return

    if stripped.startswith("|"):
        if TABLE_SEPARATOR_RE.match(stripped):
            return
        cells = [cell.strip() for cell in stripped.split("|")[1:-1]]
        if isinstance(last, Table):
            last.rows.append(cells)
        else:
            section.content.append(Table(headers=cells))
        return

    if ORDERED_ITEM_RE.match(stripped):
        _append_list_item(section, ORDERED_ITEM_RE.sub("", stripped).strip())
        return

    if BULLET_ITEM_RE.match(stripped) or INDENTED_BULLET_RE.match(line):
        _append_list_item(section, BULLET_ITEM_RE.sub("", stripped).strip())
        return

    if stripped.startswith(DEMO_MARKER):
        section.content.append(Demo(text=DEMO_RE.sub("", stripped).strip()))
        return

    if isinstance(last, Paragraph):
        last.text += "\n" + stripped
    else:
        section.content.append(Paragraph(text=stripped))


def _append_list_item(section: Section, item: str) -> None:
    last = section.last_element
    if isinstance(last, ListBlock):
        last.items.append(item)
    else:
        section.content.append(ListBlock(items=[item]))


# ---------------------------------------------------------------------------
# Section tree
# ---------------------------------------------------------------------------


def build_section_tree(lines: Iterable[str]) -> List[Section]:
    """
    Scans body lines into a nested section tree.

    The scan has two states: outside a code fence, where each line is a
    heading or classified content, and inside one, where lines are collected
    verbatim until the closing fence.

    Args:
        lines: Body lines, frontmatter already removed.

    Returns:
        The top-level sections. Text before the first heading forms a level-0
        section, dropped when it holds no content.
    """
    flat: List[Section] = []
    current: Section | None = None
    in_code = False
    code_language = ""
    code_lines: List[str] = []

    for line in lines:
        if line.lstrip().startswith(CODE_FENCE):
            if in_code:
                if current is None:
                    current = Section(level=0, title="")
                current.content.append(Code(language=code_language, text="\n".join(code_lines)))
                in_code = False
                code_language = ""
                code_lines = []
            else:
                in_code = True
                code_language = line.lstrip()[len(CODE_FENCE):].strip()
                code_lines = []
            continue
        if in_code:
            code_lines.append(line)
            continue

        heading = HEADING_RE.match(line)
        if heading:
            if current is not None:
                flat.append(current)
            current = Section(level=len(heading.group(1)), title=heading.group(2).strip())
            continue

        if current is None:
            current = Section(level=0, title="")
        classify_line(line, current)

    if in_code:
        LOGGER.debug("Unclosed code fence dropped (%d lines)", len(code_lines))
    if current is not None:
        flat.append(current)

    non_empty = [section for section in flat if section.level > 0 or section.content]
    return nest_sections(non_empty)


def nest_sections(flat: Iterable[Section]) -> List[Section]:
    """
    Nests a flat, level-tagged section sequence by heading depth.

    Uses an explicit stack of open sections: sections at the same or a
    deeper level are closed before the new one is attached to the innermost
    remaining parent.
    """
    roots: List[Section] = []
    stack: List[Section] = []
    for section in flat:
        if section.level == 0:
            roots.append(section)
            continue
        while stack and stack[-1].level >= section.level:
            stack.pop()
        if stack:
            stack[-1].children.append(section)
        else:
            roots.append(section)
        stack.append(section)
    return roots


def flatten_sections(sections: Iterable[Section]) -> List[FlatSection]:
    """Flattens the tree in pre-order, numbering sections from zero."""
    result: List[FlatSection] = []
    pending = list(reversed(list(sections)))
    while pending:
        section = pending.pop()
        result.append(FlatSection(index=len(result), section=section))
        pending.extend(reversed(section.children))
    return result


def _one_line(text: str) -> str:
    return text.replace("\n", " ")


def summarize_section(section: Section) -> str:
    """One-line digest of a section's content, used in planning prompts."""
    parts: List[str] = []
    for element in section.content:
        if isinstance(element, Paragraph):
            parts.append(_one_line(element.text)[:PARAGRAPH_DIGEST_CHARS])
        elif isinstance(element, Blockquote):
            parts.append(f"[quote] {_one_line(element.text)[:QUOTE_DIGEST_CHARS]}")
        elif isinstance(element, Table):
            parts.append(f"[table] {', '.join(element.headers)} ({len(element.rows)} rows)")
        elif isinstance(element, ListBlock):
            parts.append(f"[list] {len(element.items)} items")
        elif isinstance(element, Demo):
            parts.append(f"[demo] {element.text}")
        elif isinstance(element, Code):
            parts.append(f"[code] {element.language}")

    if section.children:
        parts.append(f"({len(section.children)} subsections)")

    return " / ".join(parts) or "(empty)"


def parse_document(raw_text: str) -> Document:
    """
    Parses a raw text document into frontmatter, title, summary and sections.

    Args:
        raw_text: The complete document, optionally starting with one or more
                  `---`-delimited frontmatter blocks.

    Returns:
        The parsed `Document`.
    """
    frontmatter, body = extract_frontmatter(raw_text)
    lines = body.splitlines()

    title = frontmatter.get("title") or extract_first_heading(lines) or ""
    summary = frontmatter.get("summary") or frontmatter.get("description") or ""

    return Document(
        frontmatter=frontmatter,
        title=title,
        summary=summary,
        sections=build_section_tree(lines),
        raw_text=raw_text,
    )
