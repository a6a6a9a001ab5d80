"""Transactional Executor — runs grouped store writes as one all-or-nothing unit.

Invariants:
    - fn returns normally (or returns Ok) => every write through the scope commits
    - fn returns Err => rollback, the same Err is returned
    - fn raises => rollback, the original exception propagates unchanged
    - Entering while the context's store already has an open scope => NestedTransactionError
    - Deadline expiry cancels fn, rolls back, and raises a TIMEOUT ProcedureError

Design Decisions:
    - Err triggers rollback through a private sentinel exception so the store's
      own context manager performs the rollback (one rollback path for both cases)
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from switchyard.core.context import Context
from switchyard.core.errors import NestedTransactionError, timeout
from switchyard.core.repository_protocols import TransactionScope
from switchyard.core.result import Err

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _RollbackForErr(Exception):
    """Carries an Err out of the scope so the store rolls back."""

    def __init__(self, err: Err):
        super().__init__(err.error.message)
        self.err = err


async def run_transaction(
    context: Context, fn: Callable[[TransactionScope], Awaitable[T]],
) -> T | Err:
    """Execute fn(scope) atomically against context.store."""
    if context.store.in_transaction:
        raise NestedTransactionError()

    remaining = context.remaining_seconds()
    if remaining is not None and remaining <= 0:
        raise timeout()

    try:
        if remaining is None:
            return await _run_scoped(context, fn)
        try:
            return await asyncio.wait_for(_run_scoped(context, fn), timeout=remaining)
        except TimeoutError as e:
            logger.warning(
                "Transaction exceeded request deadline, rolled back",
                extra={"request_id": context.request_id},
            )
            raise timeout() from e
    except _RollbackForErr as rollback:
        logger.info(
            f"Transaction rolled back: {rollback.err.error.code}",
            extra={"request_id": context.request_id, "error_code": rollback.err.error.code},
        )
        return rollback.err


async def _run_scoped(context: Context, fn: Callable[[TransactionScope], Awaitable[Any]]) -> Any:
    async with context.store.transaction() as scope:
        result = await fn(scope)
        if isinstance(result, Err):
            raise _RollbackForErr(result)
        return result
