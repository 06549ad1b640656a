"""Outcome of a validation or orchestration step that may be refused without raising."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from concept_vault.domain.common.errors import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value, or a user-readable ``error`` tagged with the ``kind`` of failure."""

    is_success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(is_success=True, value=value)

    @classmethod
    def fail(cls, error: str, kind: ErrorKind = ErrorKind.SCHEMA_VIOLATION) -> "Result[T]":
        return cls(is_success=False, error=error, kind=kind)

    def carry(self) -> "Result":
        """Pass this failure on to a caller expecting a different value type."""
        return Result.fail(self.error, self.kind)

    def __bool__(self) -> bool:
        return self.is_success
