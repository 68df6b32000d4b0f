"""
Typed outcomes for service operations.

Services return ``Ok(value)`` or ``Failure(kind, message)`` for every
expected outcome (wrong password, unknown account, stale token, ...).
Exceptions are left for genuinely unexpected faults, which the global
exception handler turns into an opaque 500.

The HTTP layer maps a ``Failure`` onto an ``AppError`` via ``errors.unwrap``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHORIZED = "unauthorized"
    INVALID_OR_EXPIRED = "invalid_or_expired"
    INVALID_INPUT = "invalid_input"
    VALIDATION_FAILED = "validation_failed"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Failure]
