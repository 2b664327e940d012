"""Validated name values used as record identities."""

import re
from dataclasses import dataclass
from typing import Any, ClassVar

from .errors import Result, ValidationError

MIN_NAME_LENGTH = 1

FEATURE_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
# Hiragana, katakana, CJK ideographs (incl. extension A), ASCII letters, digits, _, -, whitespace
TERM_NAME_PATTERN = re.compile(
    r"^[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF\u3400-\u4DBFa-zA-Z0-9_\-\s]+$"
)


@dataclass(frozen=True)
class _Name:
    """Immutable, validated name. Compare with ``==``; hashable."""

    value: str

    label: ClassVar[str] = "Name"
    pattern: ClassVar[re.Pattern[str]]
    pattern_hint: ClassVar[str] = ""

    def __str__(self) -> str:
        return self.value

    @classmethod
    def _validate(cls, raw: Any) -> list[str]:
        if not isinstance(raw, str):
            return [f"{cls.label} must be a string"]

        errors = []
        trimmed = raw.strip()
        if not trimmed:
            errors.append(f"{cls.label} must not be empty")
        if len(trimmed) < MIN_NAME_LENGTH:
            errors.append(f"{cls.label} must be at least {MIN_NAME_LENGTH} character(s) long")
        if not cls.pattern.match(trimmed):
            errors.append(f"{cls.label} {cls.pattern_hint}")
        return errors

    @classmethod
    def create(cls, raw: Any) -> Result:
        errors = cls._validate(raw)
        if errors:
            return Result.failure(ValidationError(errors))
        return Result.success(cls(raw.strip()))

    @classmethod
    def is_valid(cls, raw: Any) -> bool:
        return not cls._validate(raw)


@dataclass(frozen=True)
class FeatureName(_Name):
    """Feature identity: a letter followed by letters, digits or underscores."""

    label: ClassVar[str] = "Feature name"
    pattern: ClassVar[re.Pattern[str]] = FEATURE_NAME_PATTERN
    pattern_hint: ClassVar[str] = (
        "must start with a letter and contain only letters, digits and underscores"
    )


@dataclass(frozen=True)
class TermName(_Name):
    """Term identity: letters (including Japanese/CJK), digits, spaces, hyphens, underscores."""

    label: ClassVar[str] = "Term name"
    pattern: ClassVar[re.Pattern[str]] = TERM_NAME_PATTERN
    pattern_hint: ClassVar[str] = (
        "may contain only letters (including Japanese), digits, spaces, hyphens and underscores"
    )
