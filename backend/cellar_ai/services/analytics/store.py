"""Read-only access to the cellar for generated queries."""

import asyncio
import logging
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import (
    DataError,
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import async_sessionmaker

from cellar_ai.db.session import get_session_factory
from cellar_ai.services.security import OWNER_PARAM, ReadOnlyQuery

from .exceptions import QueryError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Fragments of OperationalError messages that mean the server, not the query, is at fault
UNAVAILABLE_MARKERS = (
    "could not connect",
    "connection refused",
    "connection reset",
    "server closed the connection",
    "terminating connection",
    "too many connections",
    "database is locked",
    "unable to open database",
    "timeout",
)


class CellarStore:
    """Executes validated read-only queries scoped to a single owner."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self.timeout_seconds = timeout_seconds

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            try:
                self._session_factory = get_session_factory()
            except RuntimeError as e:
                raise StoreUnavailableError(str(e)) from e
        return self._session_factory

    async def execute_read(self, query: ReadOnlyQuery, owner_id: str) -> list[dict[str, Any]]:
        """Run ``query`` with ``:owner_id`` bound to ``owner_id`` and return rows as dicts.

        Raises:
            QueryError: The database rejected the query text
            StoreUnavailableError: The database is unreachable or the call timed out
        """
        try:
            if self.timeout_seconds is None:
                return await self._run(query, owner_id)
            return await asyncio.wait_for(self._run(query, owner_id), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise StoreUnavailableError(
                f"Query timed out after {self.timeout_seconds}s"
            ) from e

    async def _run(self, query: ReadOnlyQuery, owner_id: str) -> list[dict[str, Any]]:
        async with self.session_factory() as session:
            try:
                if session.bind.dialect.name == "postgresql":
                    await session.execute(text("SET TRANSACTION READ ONLY"))
                result = await session.execute(text(query.text), {OWNER_PARAM: owner_id})
                columns = list(result.keys())
                rows = [dict(zip(columns, row)) for row in result.fetchall()]
            except SQLAlchemyError as e:
                raise self._classify_error(e, query.text) from e
            finally:
                await session.rollback()

        logger.info(f"Query returned {len(rows)} rows")
        return rows

    @staticmethod
    def _classify_error(error: SQLAlchemyError, query_text: str) -> Exception:
        """Split driver errors into query-level and availability failures."""
        if isinstance(error, (PoolTimeoutError, DisconnectionError, InterfaceError)):
            return StoreUnavailableError(str(error))

        if isinstance(error, DBAPIError) and error.connection_invalidated:
            return StoreUnavailableError(str(error))

        message = str(getattr(error, "orig", None) or error)

        if isinstance(error, OperationalError):
            if any(marker in message.lower() for marker in UNAVAILABLE_MARKERS):
                return StoreUnavailableError(message)
            # SQLite reports unknown columns and syntax errors as OperationalError
            return QueryError(message, query_text)

        if isinstance(error, (ProgrammingError, DataError, DBAPIError)):
            return QueryError(message, query_text)

        return StoreUnavailableError(message)
