"""Procedures — named units of request handling: guards + input schema + handler.

Invariants:
    - A Procedure is frozen once built; builders return new builders, never mutate
    - Every procedure has a kind (query | mutation) fixed at build time
    - Guards run in the order they were added with use()

Design Decisions:
    - Two root builders (public_procedure, protected_procedure) instead of
      per-procedure auth flags: the guard tuple is the only authorization mechanism
    - Name is not stored on the Procedure: identity is the key its router gives it
"""

from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from switchyard.core.context import Context
from switchyard.core.domain_types import ProcedureKind
from switchyard.core.middleware import Guard, ProtectedGuard, PublicGuard
from switchyard.core.result import Ok, Err

Handler = Callable[[Context, Any], Awaitable[Ok | Err]]


@dataclass(frozen=True)
class Procedure:
    """A validated, guarded handler. Built by ProcedureBuilder."""
    kind: ProcedureKind
    handler: Handler
    guards: tuple[Guard, ...] = ()
    input_schema: type[BaseModel] | None = None
    description: str = ""


@dataclass(frozen=True)
class ProcedureBuilder:
    """Immutable builder: public_procedure.input(Schema).query(handler)."""
    guards: tuple[Guard, ...] = ()
    input_schema: type[BaseModel] | None = None

    def use(self, guard: Guard) -> "ProcedureBuilder":
        return replace(self, guards=self.guards + (guard,))

    def input(self, schema: type[BaseModel]) -> "ProcedureBuilder":
        return replace(self, input_schema=schema)

    def query(self, handler: Handler) -> Procedure:
        return self._build(ProcedureKind.QUERY, handler)

    def mutation(self, handler: Handler) -> Procedure:
        return self._build(ProcedureKind.MUTATION, handler)

    def _build(self, kind: ProcedureKind, handler: Handler) -> Procedure:
        return Procedure(
            kind=kind,
            handler=handler,
            guards=self.guards,
            input_schema=self.input_schema,
            description=(handler.__doc__ or "").strip().split("\n")[0],
        )


public_procedure = ProcedureBuilder(guards=(PublicGuard(),))
protected_procedure = ProcedureBuilder(guards=(ProtectedGuard(),))
