"""Database Access — async engine/session management and the SQL-backed DataStore.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Single-entity writes through SqlDataStore commit immediately, each in its own session
    - Writes through SqlTransactionScope share one session inside session.begin():
      they commit together when the scope exits cleanly, or roll back together
    - A SqlDataStore opens at most one scope at a time (NestedTransactionError otherwise)

Design Decisions:
    - Manager stored on app.state by the lifespan, not as a module-level singleton
    - One SqlDataStore per request: it is the per-request store handle on Context,
      sharing the process-wide session factory
    - expire_on_commit=False: returned entities stay readable after commit
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

from switchyard.core.errors import NestedTransactionError
from switchyard.db.base import Base
import switchyard.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)

E = TypeVar("E")


class DatabaseSessionManager:
    """Owns the async engine and session factory; hands out per-request stores."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
        if ":memory:" in database_url:
            # In-memory databases live on one connection
            engine_kwargs["poolclass"] = StaticPool
        elif not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"DB error, session rolled back: {e.__class__.__name__}")
            raise
        finally:
            await session.close()

    def store(self) -> "SqlDataStore":
        """Fresh per-request store handle."""
        return SqlDataStore(self._session_factory)

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


class SqlTransactionScope:
    """Store handle bound to one open transaction. Nothing here commits on its own."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, model: type[E], ident: Any) -> E | None:
        return await self._session.get(model, ident)

    async def scalars(self, statement: Any) -> list[Any]:
        result = await self._session.scalars(statement)
        return list(result.all())

    async def scalar(self, statement: Any) -> Any:
        return await self._session.scalar(statement)

    async def add(self, entity: Any) -> None:
        self._session.add(entity)

    async def delete(self, entity: Any) -> None:
        await self._session.delete(entity)

    async def flush(self) -> None:
        await self._session.flush()

    async def execute(self, statement: Any) -> Any:
        return await self._session.execute(statement)


class SqlDataStore:
    """DataStore over a session factory. Reads and single writes use short sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._in_transaction = False

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    async def get(self, model: type[E], ident: Any) -> E | None:
        async with self._session_factory() as session:
            return await session.get(model, ident)

    async def scalars(self, statement: Any) -> list[Any]:
        async with self._session_factory() as session:
            result = await session.scalars(statement)
            return list(result.all())

    async def scalar(self, statement: Any) -> Any:
        async with self._session_factory() as session:
            return await session.scalar(statement)

    async def add(self, entity: Any) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(entity)

    async def delete(self, entity: Any) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.delete(await session.merge(entity))

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[SqlTransactionScope, None]:
        """Open one atomic scope: commit on clean exit, roll back on any exception."""
        if self._in_transaction:
            raise NestedTransactionError()
        self._in_transaction = True
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield SqlTransactionScope(session)
        finally:
            self._in_transaction = False
