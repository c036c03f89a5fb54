"""Outcome[T] - a typed result that distinguishes empty from failed.

Collaborators that read persisted state or shell out to git return an
Outcome instead of raising or returning None:

    - OK: a value is present
    - EMPTY: nothing to return (no graph yet, no history, not a git repo)
    - FAILED: something was there but could not be used (corrupt file,
      analyzer exception); ``error`` carries the exception

Usage:
    outcome = store.load(root)
    if outcome.is_ok:
        graph = outcome.value
    elif outcome.is_failed:
        logger.warning("graph unusable: %s", outcome.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class OutcomeStatus(Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an operation that may legitimately produce nothing."""

    status: OutcomeStatus
    _value: Optional[T] = None
    reason: str = ""
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, value: T) -> Outcome[T]:
        return cls(OutcomeStatus.OK, _value=value)

    @classmethod
    def empty(cls, reason: str = "") -> Outcome[T]:
        return cls(OutcomeStatus.EMPTY, reason=reason)

    @classmethod
    def failed(cls, error: Exception) -> Outcome[T]:
        return cls(OutcomeStatus.FAILED, reason=str(error), error=error)

    @property
    def is_ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @property
    def is_empty(self) -> bool:
        return self.status is OutcomeStatus.EMPTY

    @property
    def is_failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    @property
    def value(self) -> T:
        """The wrapped value. Raises the stored error (or LookupError) if absent."""
        if self.status is OutcomeStatus.OK:
            return self._value  # type: ignore[return-value]
        if self.error is not None:
            raise self.error
        raise LookupError(self.reason or "Outcome has no value")

    def unwrap_or(self, default: T) -> T:
        return self._value if self.status is OutcomeStatus.OK else default  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> Outcome[U]:
        """Apply ``fn`` to an OK value; EMPTY and FAILED pass through unchanged."""
        if self.status is OutcomeStatus.OK:
            return Outcome.ok(fn(self._value))  # type: ignore[arg-type]
        return Outcome(self.status, reason=self.reason, error=self.error)

    def to_dict(self) -> dict:
        data: dict = {"status": self.status.value}
        if self.reason:
            data["reason"] = self.reason
        return data
