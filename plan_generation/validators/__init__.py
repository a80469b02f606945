from __future__ import annotations

from typing import Any, Dict, Iterable

from ..models import ValidationIssue, ValidationReport
from .rules import validate_script_rules
from .schema import validate_script_schema


def build_validation_report(issues: Iterable[ValidationIssue]) -> ValidationReport:
    """A report is valid when no issue has 'error' severity."""
    issues_list = list(issues)
    is_valid = not any(issue.severity == "error" for issue in issues_list)
    return ValidationReport(is_valid=is_valid, issues=issues_list)


def validate_script(script: Dict[str, Any]) -> ValidationReport:
    """Schema validation, followed by the editorial rules when the schema passes."""
    issues = list(validate_script_schema(script))
    if not issues:
        issues.extend(validate_script_rules(script))
    return build_validation_report(issues)


__all__ = [
    "build_validation_report",
    "validate_script",
    "validate_script_rules",
    "validate_script_schema",
]
