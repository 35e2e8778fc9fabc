"""Error taxonomy for the query engine.

The core raises these; transport layers turn them into structured results
with :meth:`QueryError.to_dict`.
"""

from __future__ import annotations

from typing import Any


class QueryError(Exception):
    """Base class for every error the engine reports to callers."""

    kind = "error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "detail": self.detail}


class ValidationError(QueryError, ValueError):
    """Malformed or conflicting query input. No query was executed."""

    kind = "validation"

    def __init__(self, param: str | None, detail: str) -> None:
        super().__init__(detail)
        self.param = param

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        if self.param is not None:
            d["param"] = self.param
        return d


class NotFoundError(QueryError, LookupError):
    """The event does not exist or is not readable by the caller."""

    kind = "not_found"


class AccessDeniedError(QueryError, PermissionError):
    """The caller cannot read any logger at all."""

    kind = "permission"


class StorageError(QueryError):
    """The storage collaborator failed; never retried by the engine."""

    kind = "storage"


class ConfigurationError(QueryError, ValueError):
    """An engine setting from the environment is malformed."""

    kind = "config"
