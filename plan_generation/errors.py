"""Exceptions raised by the document-to-script pipeline."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for failures surfaced to the pipeline driver."""


class GenerationError(PipelineError):
    """The text-generation collaborator failed or returned unusable output."""


class PlanningError(PipelineError):
    """The planning call produced no usable list of scene plans."""


class AssemblyError(PipelineError):
    """The sanitized script still violates the canonical schema."""

    def __init__(self, message: str, errors: list | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
