"""User-facing operation outcomes and per-operation busy flags."""
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Set

SUCCESS = "success"
INFO = "info"
ERROR = "error"

EXPORT = "export"
IMPORT = "import"
SYNC_TO = "sync_to"
SYNC_FROM = "sync_from"


@dataclass(frozen=True)
class Outcome:
    level: str  # success | info | error
    title: str
    detail: str
    count: int = 0

    @property
    def ok(self) -> bool:
        return self.level != ERROR

    @classmethod
    def success(cls, title: str, detail: str, count: int = 0) -> "Outcome":
        return cls(SUCCESS, title, detail, count)

    @classmethod
    def info(cls, title: str, detail: str) -> "Outcome":
        return cls(INFO, title, detail)

    @classmethod
    def error(cls, title: str, detail: str) -> "Outcome":
        return cls(ERROR, title, detail)


class OperationInProgress(Exception):
    def __init__(self, kind: str):
        super().__init__(f"'{kind}' is already in progress")
        self.kind = kind


class BusyFlags:
    """At most one operation of each kind may run at a time."""

    def __init__(self) -> None:
        self._busy: Set[str] = set()

    def is_busy(self, kind: str) -> bool:
        return kind in self._busy

    @contextmanager
    def hold(self, kind: str) -> Iterator[None]:
        if kind in self._busy:
            raise OperationInProgress(kind)
        self._busy.add(kind)
        try:
            yield
        finally:
            self._busy.discard(kind)


def busy_outcome(kind: str) -> Outcome:
    label = kind.replace("_", " ")
    return Outcome.error("Please wait", f"A {label} operation is already in progress.")
