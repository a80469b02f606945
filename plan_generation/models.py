"""
This module defines the Pydantic models exchanged between the planning and
conversion stages: scene plans returned by the planning call, raw per-scene
conversions returned by the conversion call, and the issues produced when a
finished script is validated.

Model output is untrusted, so these models are deliberately lenient about
missing fields; strict checking happens when the canonical `Script` is
assembled.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .script_schema import Line


class ScenePlan(BaseModel):
    """
    A grouping decision: which flattened sections make up one scene.
    """

    model_config = ConfigDict(populate_by_name=True)

    scene_title: str = Field(default="", alias="sceneTitle", description="Working title of the scene.")
    section_indices: List[int] = Field(
        default_factory=list,
        alias="sectionIndices",
        description="Pre-order indices into the flattened section list.",
    )
    slide_type_hint: str = Field(default="", alias="slideTypeHint", description="Suggested slide type.")
    notes: str = Field(default="", description="Free-form guidance for the conversion call.")

    @field_validator("scene_title", "slide_type_hint", "notes", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("section_indices", mode="before")
    @classmethod
    def _keep_integer_indices(cls, value: Any) -> List[int]:
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            value = [value]
        if not isinstance(value, list):
            return []
        indices: List[int] = []
        for item in value:
            if isinstance(item, bool):
                continue
            if isinstance(item, int):
                indices.append(item)
            elif isinstance(item, str) and item.strip().lstrip("-").isdigit():
                indices.append(int(item.strip()))
        return indices


class BlockConversion(BaseModel):
    """
    Raw per-scene output of the conversion call, before sanitization.

    `scene_title`, `slide_type` and `transition` are kept as free strings;
    the assembler validates and repairs them.
    """

    model_config = ConfigDict(populate_by_name=True)

    scene_title: Optional[str] = Field(default=None, alias="sceneTitle")
    slide_type: Optional[str] = Field(default=None, alias="slideType")
    slide_data: Dict[str, Any] = Field(default_factory=dict, alias="slideData")
    lines: List[Line] = Field(default_factory=list)
    transition: Optional[str] = None

    @field_validator("slide_data", "lines", mode="before")
    @classmethod
    def _none_to_empty_container(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "slide_data" else []
        return value

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ValidationIssue(BaseModel):
    """
    Represents a single issue found while validating a script.
    """

    code: str = Field(description="A unique code identifying the type of validation issue.")
    message: str = Field(description="A human-readable description of the issue.")
    severity: str = Field(default="error", description="The severity of the issue ('error' or 'warning').")
    context: Dict[str, object] = Field(
        default_factory=dict,
        description="Additional context such as the scene index or JSON path.",
    )


class ValidationReport(BaseModel):
    """
    Summarizes the results of validating a script.
    """

    is_valid: bool = Field(description="True if no issue has 'error' severity.")
    issues: List[ValidationIssue] = Field(default_factory=list, description="All issues found.")
