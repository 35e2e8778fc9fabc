"""Caller read access.

The engine never decides policy. Callers pass a :class:`ReadAccess` describing
which loggers and levels they may read, and the compiler folds it into the
:class:`FilterSet` before any scan.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .models import LogLevel


@dataclass(frozen=True, slots=True)
class ReadAccess:
    loggers: frozenset[str] | None = None  # None = every logger
    levels: frozenset[LogLevel] | None = None  # None = every level
    predicate: Callable[[str, LogLevel], bool] | None = None

    @classmethod
    def unrestricted(cls) -> ReadAccess:
        return cls()

    @classmethod
    def for_loggers(cls, loggers: Iterable[str]) -> ReadAccess:
        return cls(loggers=frozenset(loggers))

    def denies_everything(self) -> bool:
        """True when the allow-lists leave nothing readable."""
        return (self.loggers is not None and not self.loggers) or (
            self.levels is not None and not self.levels
        )

    def is_readable(self, logger: str, level: LogLevel) -> bool:
        if self.loggers is not None and logger not in self.loggers:
            return False
        if self.levels is not None and level not in self.levels:
            return False
        if self.predicate is not None and not self.predicate(logger, level):
            return False
        return True
