"""Middleware Guards — ordered checks that may reject or narrow the request context.

Invariants:
    - A guard returns a Context (possibly narrowed) or a ProcedureError — it never raises
    - run_guards applies guards left-to-right; the first error wins and stops the chain
    - Guards never write to the data store (authorization checks are replayable)
    - ProtectedGuard output is always an AuthedContext

Design Decisions:
    - Explicit tuple of guard objects composed by iteration, no chaining via inheritance
    - Pure functions of the context: testable without a store or transport
"""

from dataclasses import fields
from typing import Protocol

from switchyard.core.context import AuthedContext, Context
from switchyard.core.errors import ProcedureError, unauthorized


class Guard(Protocol):
    """Single capability: attempt(context) -> context | error."""
    def attempt(self, context: Context) -> Context | ProcedureError: ...


class PublicGuard:
    """Passes the context through unchanged. Never fails."""

    def attempt(self, context: Context) -> Context | ProcedureError:
        return context

    def __repr__(self) -> str:
        return "PublicGuard()"


class ProtectedGuard:
    """Requires a session; narrows the context to AuthedContext."""

    def attempt(self, context: Context) -> Context | ProcedureError:
        if context.session is None:
            return unauthorized()
        if isinstance(context, AuthedContext):
            return context
        return AuthedContext(**{f.name: getattr(context, f.name) for f in fields(context)})

    def __repr__(self) -> str:
        return "ProtectedGuard()"


def run_guards(
    guards: tuple[Guard, ...], context: Context,
) -> Context | ProcedureError:
    """Apply guards in order. Returns the final context or the first error."""
    for guard in guards:
        outcome = guard.attempt(context)
        if isinstance(outcome, ProcedureError):
            return outcome
        context = outcome
    return context
