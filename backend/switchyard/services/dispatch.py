"""Procedure Dispatch — the outermost boundary between a transport and the router tree.

Invariants:
    - Order per request: resolve -> kind check -> guards -> validation -> handler
    - A guard or validation failure means the handler is never invoked
    - Every outcome is either a success payload (200) or an ErrorResponse from map_error()
    - No exception escapes call(): anything unclassified is coerced to INTERNAL
    - Internal causes are logged with tracebacks only outside production

Design Decisions:
    - Router is resolved per call from an immutable tree; the dispatcher holds no
      per-request state and is shared across concurrent requests
    - The handler runs under the context deadline; expiry => TIMEOUT
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from switchyard.core.context import Context
from switchyard.core.domain_types import ProcedureKind
from switchyard.core.errors import (
    ErrorKind, ErrorResponse, ProcedureError, coerce_error, map_error, timeout,
)
from switchyard.core.middleware import run_guards
from switchyard.core.procedure import Procedure
from switchyard.core.result import Err, Ok
from switchyard.core.router import Router
from switchyard.core.validation import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    """What the transport sends back: data on success, a safe error otherwise."""
    status: int
    data: Any = None
    error: ErrorResponse | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProcedureDispatch:
    """Routes a dotted path to its procedure and runs the request pipeline."""

    def __init__(self, router: Router, *, log_internal_causes: bool = True):
        self._router = router
        self._log_internal_causes = log_internal_causes

    @property
    def router(self) -> Router:
        return self._router

    async def call(
        self,
        context: Context,
        path: str,
        raw_input: Any = None,
        kind: ProcedureKind | None = None,
    ) -> DispatchOutcome:
        """Run one request end to end. Never raises."""
        started = time.perf_counter()
        try:
            result = await self._execute(context, path, raw_input, kind)
        except Exception as exc:
            result = Err(coerce_error(exc))

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        if isinstance(result, Ok):
            logger.info(
                f"{path} ok",
                extra={
                    "request_id": context.request_id, "procedure": path,
                    "status": 200, "duration_ms": duration_ms,
                },
            )
            return DispatchOutcome(status=200, data=result.value)

        response = map_error(result.error)
        self._log_failure(context, path, result.error, response, duration_ms)
        return DispatchOutcome(status=response.status, error=response)

    async def _execute(
        self,
        context: Context,
        path: str,
        raw_input: Any,
        kind: ProcedureKind | None,
    ) -> Ok | Err:
        procedure = self._router.resolve(path)
        if isinstance(procedure, ProcedureError):
            return Err(procedure)

        if kind is not None and kind is not procedure.kind:
            return Err(ProcedureError(
                ErrorKind.METHOD_NOT_SUPPORTED,
                f"'{path}' is a {procedure.kind.value}, not a {kind.value}",
            ))

        guarded = run_guards(procedure.guards, context)
        if isinstance(guarded, ProcedureError):
            return Err(guarded)

        validated = validate(procedure.input_schema, raw_input)
        if isinstance(validated, Err):
            return validated

        return await self._invoke(procedure, guarded, validated.value)

    async def _invoke(self, procedure: Procedure, context: Context, value: Any) -> Ok | Err:
        remaining = context.remaining_seconds()
        if remaining is None:
            result = await procedure.handler(context, value)
        elif remaining <= 0:
            return Err(timeout())
        else:
            try:
                result = await asyncio.wait_for(
                    procedure.handler(context, value), timeout=remaining,
                )
            except TimeoutError:
                return Err(timeout())

        if not isinstance(result, (Ok, Err)):
            raise TypeError(
                f"Handler returned {type(result).__name__}, expected Ok or Err",
            )
        return result

    def _log_failure(
        self,
        context: Context,
        path: str,
        error: ProcedureError,
        response: ErrorResponse,
        duration_ms: float,
    ) -> None:
        extra = {
            "request_id": context.request_id, "procedure": path,
            "kind": error.kind.value, "error_code": error.code,
            "status": response.status, "duration_ms": duration_ms,
        }
        if error.kind is not ErrorKind.INTERNAL:
            logger.warning(f"{path} failed: {error.code}", extra=extra)
            return
        if self._log_internal_causes and error.cause is not None:
            logger.error(
                f"{path} internal error: {error.cause!r}",
                extra=extra,
                exc_info=(type(error.cause), error.cause, error.cause.__traceback__),
            )
        else:
            logger.error(f"{path} internal error", extra=extra)
