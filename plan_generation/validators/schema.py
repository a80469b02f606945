from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Iterable

from jsonschema import Draft202012Validator

from ..models import ValidationIssue
from ..script_schema import script_json_schema


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema = script_json_schema()
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def validate_script_schema(script: Dict[str, Any]) -> Iterable[ValidationIssue]:
    """Checks a persisted script document against the canonical JSON Schema."""
    for error in sorted(_validator().iter_errors(script), key=lambda e: [str(part) for part in e.path]):
        yield ValidationIssue(
            code="schema.validation",
            message=error.message,
            severity="error",
            context={"path": list(error.path)},
        )
