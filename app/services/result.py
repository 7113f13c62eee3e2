"""Tagged results returned at every adapter boundary.

Adapters never raise to their callers. They return ``Ok(value)`` on success or
``Err(kind, message)`` when a local precondition fails (``VALIDATION``) or the
provider call fails (``PROVIDER``).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    PROVIDER = "provider"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @classmethod
    def validation(cls, message: str) -> "Err":
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def provider(cls, message: str) -> "Err":
        return cls(ErrorKind.PROVIDER, message)


Result = Ok[T] | Err
