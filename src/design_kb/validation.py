"""Structural validation of untrusted feature and term payloads.

Validation reports every violation it finds. Name charset rules are not
checked here; they belong to :mod:`design_kb.identity`.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import pydantic

from .models import FeatureData, RecordModel, TermData


@dataclass(frozen=True)
class ValidationResult:
    """Verdict of a validation run."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def failure(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=False, errors=list(errors))


def _format_location(loc: tuple[str | int, ...]) -> str:
    """('coreLogicSteps', 0, 'stepNumber') -> 'coreLogicSteps[0].stepNumber'"""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else part
    return path or "record"


def _format_error(error: dict[str, Any]) -> str:
    message = error["msg"]
    if error["type"] == "value_error":
        message = str(error["ctx"]["error"])
    return f"{_format_location(error['loc'])}: {message}"


def _schema_errors(model: type[RecordModel], payload: Any) -> list[str]:
    try:
        model.model_validate(payload)
    except pydantic.ValidationError as e:
        return [_format_error(err) for err in e.errors()]
    return []


def duplicate_step_numbers(payload: Any) -> list[int]:
    """Step numbers that appear more than once in a raw feature payload."""
    if not isinstance(payload, dict) or not isinstance(payload.get("coreLogicSteps"), list):
        return []

    numbers = [
        step.get("stepNumber")
        for step in payload["coreLogicSteps"]
        if isinstance(step, dict)
    ]
    counts = Counter(
        n for n in numbers if isinstance(n, int) and not isinstance(n, bool)
    )
    return sorted(n for n, count in counts.items() if count > 1)


def validate_feature(payload: Any) -> ValidationResult:
    """Check a raw feature record against the feature shape."""
    errors = _schema_errors(FeatureData, payload)

    for number in duplicate_step_numbers(payload):
        errors.append(f"coreLogicSteps: duplicate stepNumber {number}")

    return ValidationResult.failure(errors) if errors else ValidationResult.success()


def validate_term(payload: Any) -> ValidationResult:
    """Check a raw term record against the term shape."""
    errors = _schema_errors(TermData, payload)
    return ValidationResult.failure(errors) if errors else ValidationResult.success()
