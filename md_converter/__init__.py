"""
Parsing of loosely structured markdown documents into a typed section tree.

The package is dependency-free and deterministic; it is the first stage of
the document-to-script pipeline.
"""

from .markdown_parser import flatten_sections, parse_document, summarize_section
from .models import Document, FlatSection, Section

__all__ = [
    "Document",
    "FlatSection",
    "Section",
    "flatten_sections",
    "parse_document",
    "summarize_section",
]
