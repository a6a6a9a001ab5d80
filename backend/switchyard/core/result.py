"""Handler Results — explicit success/error values at the handler boundary.

Invariants:
    - A handler returns exactly one of Ok(value) or Err(ProcedureError)
    - Err always wraps a classified ProcedureError (never a bare exception)

Design Decisions:
    - Return values over raise for business errors: the error path has the same
      shape as the success path; exceptions are left for defects
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from switchyard.core.errors import ProcedureError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: ProcedureError

    @property
    def ok(self) -> bool:
        return False


Result = Ok[Any] | Err
