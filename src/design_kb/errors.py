"""Error types and the Result wrapper returned across module boundaries."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class KnowledgeBaseError(Exception):
    """Base class for all design-kb errors."""

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(KnowledgeBaseError):
    """Malformed input or a failed business rule.

    Carries every violation found, not just the first one.
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class StorageError(KnowledgeBaseError):
    """The design document could not be read, parsed or written."""


class ConfigError(KnowledgeBaseError):
    """Invalid process configuration."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or failure error, never both.

    Operations return this instead of raising so callers at every layer
    get a uniform shape.
    """

    value: T | None = None
    error: KnowledgeBaseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: KnowledgeBaseError | str) -> "Result[T]":
        if isinstance(error, str):
            error = KnowledgeBaseError(error)
        return cls(error=error)

    @classmethod
    def from_exception(cls, exc: Exception, context: str) -> "Result[T]":
        """Wrap an unexpected exception, keeping known error types as they are."""
        if isinstance(exc, KnowledgeBaseError):
            return cls(error=exc)
        return cls(error=KnowledgeBaseError(f"{context}: {exc}"))

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value
