"""
Dataclasses describing a parsed source document.

A document is a frontmatter map plus a tree of heading-delimited sections.
Each section owns an ordered list of classified content elements; elements
never move between sections once the scanner has appended them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Union


@dataclass
class Paragraph:
    """Free text; consecutive lines are newline-joined."""

    text: str
    kind: str = field(default="paragraph", init=False)


@dataclass
class Blockquote:
    """Quoted text, used by authors to mark what should be spoken aloud."""

    text: str
    kind: str = field(default="blockquote", init=False)


@dataclass
class Table:
    """A pipe table. The first non-separator row becomes the headers."""

    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)
    kind: str = field(default="table", init=False)


@dataclass
class ListBlock:
    """Ordered or unordered list items with their markers stripped."""

    items: List[str] = field(default_factory=list)
    kind: str = field(default="list", init=False)


@dataclass
class Demo:
    """A `→` demo instruction. Never merged with its neighbours."""

    text: str
    kind: str = field(default="demo", init=False)


@dataclass
class Code:
    """Verbatim fenced code block."""

    language: str
    text: str
    kind: str = field(default="code", init=False)


ContentElement = Union[Paragraph, Blockquote, Table, ListBlock, Demo, Code]


@dataclass
class Section:
    """
    A heading-delimited region of the document.

    Attributes:
        level: Heading depth (1 for `#`, 2 for `##`, ...). 0 for text that
               precedes the first heading.
        title: Heading text, empty for level-0 sections.
        content: Classified content elements in source order.
        children: Nested sections; every child has a strictly greater level.
    """

    level: int
    title: str
    content: List[ContentElement] = field(default_factory=list)
    children: List["Section"] = field(default_factory=list)

    @property
    def last_element(self) -> ContentElement | None:
        return self.content[-1] if self.content else None


@dataclass
class FlatSection:
    """A section paired with its pre-order index in the flattened tree."""

    index: int
    section: Section


@dataclass
class Document:
    """
    The result of parsing one source text.

    Attributes:
        frontmatter: Flat key/value metadata from the leading `---` blocks.
        title: Frontmatter title, else the first H1, else an empty string.
        summary: Frontmatter summary, else description, else an empty string.
        sections: Top-level sections of the section tree.
        raw_text: The unmodified input text.
    """

    frontmatter: Dict[str, str]
    title: str
    summary: str
    sections: List[Section]
    raw_text: str
