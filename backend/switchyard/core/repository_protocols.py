"""Boundary Protocols — contracts between core and the data store.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - Writes through a TransactionScope are not durable until the scope commits
    - A scope never outlives the run_transaction call that opened it

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; pure core logic never awaits them directly
"""

from typing import Any, AsyncContextManager, Protocol, TypeVar

E = TypeVar("E")


class ReadableStore(Protocol):
    """Single-entity reads and statement queries shared by stores and scopes."""
    async def get(self, model: type[E], ident: Any) -> E | None: ...
    async def scalars(self, statement: Any) -> list[Any]: ...
    async def scalar(self, statement: Any) -> Any: ...


class TransactionScope(ReadableStore, Protocol):
    """Ephemeral handle valid for one atomic operation."""
    async def add(self, entity: Any) -> None: ...
    async def delete(self, entity: Any) -> None: ...
    async def flush(self) -> None: ...
    async def execute(self, statement: Any) -> Any: ...


class DataStore(ReadableStore, Protocol):
    """Uniform store interface: single-entity writes plus atomic batches."""
    @property
    def in_transaction(self) -> bool: ...

    async def add(self, entity: Any) -> None: ...
    async def delete(self, entity: Any) -> None: ...

    def transaction(self) -> AsyncContextManager[TransactionScope]: ...
