"""
Result-or-error type returned by service entry points.

Services never raise user-facing failures out of their public operations;
they return an OperationResult and leave presentation (alerts, inline text)
to the caller.
"""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from animus.core.exceptions import AnimusError

T = TypeVar("T")


@dataclass
class OperationResult(Generic[T]):
    """Value of a completed operation, or the error that stopped it."""
    value: Optional[T] = None
    error: Optional[AnimusError] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, warnings: Optional[List[str]] = None) -> "OperationResult[T]":
        return cls(value=value, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error: AnimusError, warnings: Optional[List[str]] = None) -> "OperationResult[T]":
        return cls(error=error, warnings=list(warnings or []))

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""
        if self.error is not None:
            raise self.error
        assert self.value is not None
        return self.value
