# contentops/core/results.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from contentops.core.errors import AssignmentError

T = TypeVar("T")


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """`{data?, error?}` pair returned by every store primitive."""

    data: Optional[T] = None
    error: Optional[AssignmentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class OperationResult:
    """`{success, error?}` returned by registry mutations."""

    success: bool
    error: Optional[AssignmentError] = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: AssignmentError) -> "OperationResult":
        return cls(success=False, error=error)
