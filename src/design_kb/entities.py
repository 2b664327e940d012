"""Feature and Term entities.

An entity only comes into existence through ``create``, which parses the
identity and validates the whole payload. There is no partially valid entity.
"""

import copy
from dataclasses import dataclass, field
from typing import Any

from .errors import Result, ValidationError
from .identity import FeatureName, TermName
from .validation import validate_feature, validate_term


def _section(data: Any, key: str) -> dict[str, Any]:
    """Return ``data[key]`` when both are dicts, else an empty dict."""
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    return {}


def _merge_section(current: dict[str, Any], partial: dict[str, Any], key: str) -> dict[str, Any]:
    return {**_section(current, key), **_section(partial, key)}


def merge_feature_data(current: dict[str, Any], partial: dict[str, Any]) -> dict[str, Any]:
    """Top-level sections are replaced; the ``feature`` section is merged key by key."""
    merged = {**current, **partial}
    merged["feature"] = _merge_section(current, partial, "feature")
    return merged


def merge_term_data(current: dict[str, Any], partial: dict[str, Any]) -> dict[str, Any]:
    """Every section is merged key by key, including ``term.context``."""
    merged = {**current, **partial}

    term = _merge_section(current, partial, "term")
    term["context"] = _merge_section(
        _section(current, "term"), _section(partial, "term"), "context"
    )
    merged["term"] = term

    for key in ("details", "relationships", "implementation"):
        merged[key] = _merge_section(current, partial, key)
    return merged


@dataclass(frozen=True)
class Feature:
    """A validated feature definition."""

    name: FeatureName
    _data: dict[str, Any] = field(repr=False, compare=False)

    @property
    def data(self) -> dict[str, Any]:
        """A deep copy of the stored record."""
        return copy.deepcopy(self._data)

    @property
    def purpose(self) -> str:
        return self._data["feature"]["purpose"]

    @property
    def user_stories(self) -> list[str]:
        return list(self._data["feature"]["userStories"])

    @property
    def inputs(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._data["inputs"])

    @property
    def outputs(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._data["outputs"])

    @property
    def core_logic_steps(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._data["coreLogicSteps"])

    def update(self, partial: dict[str, Any]) -> Result:
        """Build a new Feature from this one plus ``partial``; re-validates everything."""
        return Feature.create(merge_feature_data(self._data, partial))

    @classmethod
    def create(cls, data: Any) -> Result:
        name_result = FeatureName.create(_section(data, "feature").get("name"))
        if not name_result.ok:
            return name_result

        validation = validate_feature(data)
        if not validation.is_valid:
            return Result.failure(ValidationError(validation.errors))

        stored = copy.deepcopy(data)
        stored["feature"]["name"] = name_result.value.value
        return Result.success(cls(name_result.value, stored))


@dataclass(frozen=True)
class Term:
    """A validated ubiquitous-language term."""

    name: TermName
    _data: dict[str, Any] = field(repr=False, compare=False)

    @property
    def data(self) -> dict[str, Any]:
        """A deep copy of the stored record."""
        return copy.deepcopy(self._data)

    @property
    def definition(self) -> str:
        return self._data["term"]["definition"]

    @property
    def aliases(self) -> list[str]:
        return list(self._data["term"]["aliases"])

    @property
    def category(self) -> str:
        return self._data["details"]["category"]

    @property
    def bounded_context(self) -> str:
        return self._data["term"]["context"]["boundedContext"]

    @property
    def associated_functions(self) -> list[str]:
        return list(self._data["relationships"]["associatedFunctions"])

    def has_alias(self, alias: str) -> bool:
        return alias in self._data["term"]["aliases"]

    def is_associated_with_function(self, function_name: str) -> bool:
        return function_name in self._data["relationships"]["associatedFunctions"]

    def update(self, partial: dict[str, Any]) -> Result:
        """Build a new Term from this one plus ``partial``; re-validates everything."""
        return Term.create(merge_term_data(self._data, partial))

    @classmethod
    def create(cls, data: Any) -> Result:
        name_result = TermName.create(_section(data, "term").get("name"))
        if not name_result.ok:
            return name_result

        validation = validate_term(data)
        if not validation.is_valid:
            return Result.failure(ValidationError(validation.errors))

        stored = copy.deepcopy(data)
        stored["term"]["name"] = name_result.value.value
        return Result.success(cls(name_result.value, stored))
