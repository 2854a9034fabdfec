from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class GridQueryError(Exception):
    """Base class for every error raised by gridquery."""


class PoolNotReady(GridQueryError):
    """No usable connection pool (closed, never created, or exhausted)."""


class ValidationError(GridQueryError, ValueError):
    """Malformed caller input, e.g. a non-sequence `params` given to select()."""


class QueryExecutionError(GridQueryError):
    """The driver rejected or failed to run a statement."""

    def __init__(self, message: str, *, sql: Optional[str] = None):
        super().__init__(message)
        self.sql = sql


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorInfo:
    kind: str
    message: str
    exception: Optional[BaseException] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        return cls(kind=type(exc).__name__, message=str(exc), exception=exc)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: ErrorInfo

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """
        Raise the error this result carries. Driver failures surface as
        QueryExecutionError; gridquery's own errors are re-raised as-is.
        """
        exc = self.error.exception
        if isinstance(exc, GridQueryError):
            raise exc
        raise QueryExecutionError(self.error.message) from exc


Result = Union[Ok[T], Err]


def err(exc: BaseException) -> Err:
    return Err(ErrorInfo.from_exception(exc))


__all__ = [
    "GridQueryError",
    "PoolNotReady",
    "ValidationError",
    "QueryExecutionError",
    "ErrorInfo",
    "Ok",
    "Err",
    "Result",
    "err",
]
