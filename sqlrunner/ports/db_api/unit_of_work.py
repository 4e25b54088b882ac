"""DB-API unit of work: one connection, at most one active transaction."""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, Iterator

from ...core.errors import ArgumentNullError, DataExecutionError, InvalidOperationError
from .command import DbApiCommand
from .dialects import Dialect, SqlServerDialect

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Owns a DB-API connection and its transaction.

    Commands created while a transaction is active are enlisted in it;
    otherwise each command commits on its own. Closing the unit of work
    rolls back an active transaction and closes the connection.
    """

    def __init__(self, conn: Any, dialect: Dialect | None = None):
        """Create unit of work.

        Args:
            conn: Open DB-API connection. Ownership passes to this object.
            dialect: Concrete SQL dialect instance; defaults to SQL Server.
        """

        if conn is None:
            raise ArgumentNullError("A database connection is required.", "conn")
        self.conn: Any | None = conn
        self.dialect = dialect if dialect is not None else SqlServerDialect()
        self._in_transaction = False
        self._closed = False

    @classmethod
    def open(
        cls,
        connect: Callable[..., Any],
        *args: Any,
        dialect: Dialect | None = None,
        **kwargs: Any,
    ) -> UnitOfWork:
        """Open a connection with a driver `connect` callable.

        Raises:
            DataExecutionError: If the driver cannot open the connection.
        """

        if connect is None:
            raise ArgumentNullError("A connect callable is required.", "connect")
        try:
            conn = connect(*args, **kwargs)
        except Exception as exc:
            target = getattr(connect, "__qualname__", repr(connect))
            raise DataExecutionError(
                f"Failed to create connection with {target}. "
                "See the original error for more details.",
                original=exc,
            ) from exc
        return cls(conn, dialect)

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open_connection(self) -> Any:
        if self._closed or self.conn is None:
            raise InvalidOperationError("connection is closed")
        return self.conn

    def _should_begin_explicit_transaction(self, conn: Any) -> bool:
        """SQLite connections in autocommit mode need an explicit `BEGIN`."""

        if getattr(self.dialect, "name", "").lower() != "sqlite":
            return False
        if getattr(conn, "isolation_level", "") is not None:
            return False
        return not bool(getattr(conn, "in_transaction", False))

    def create_command(self) -> DbApiCommand:
        """Create a command enlisted in the active transaction, if any."""

        conn = self._require_open_connection()
        return DbApiCommand(conn, self.dialect, enlisted=self._in_transaction)

    def begin_transaction(self) -> None:
        conn = self._require_open_connection()
        if self._in_transaction:
            raise InvalidOperationError("A transaction has already been started.")

        if self._should_begin_explicit_transaction(conn):
            try:
                cur = conn.cursor()
                cur.execute("BEGIN")
            except Exception as exc:
                raise InvalidOperationError(
                    "A transaction could not be started. "
                    "See the original error for more details."
                ) from exc
        self._in_transaction = True
        logger.debug("Transaction started")

    def commit(self) -> None:
        conn = self._require_open_connection()
        if not self._in_transaction:
            raise InvalidOperationError(
                "The transaction has already been committed, rolled back, "
                "or was never started."
            )
        try:
            conn.commit()
        except Exception as exc:
            raise InvalidOperationError(
                "The transaction could not be committed or the connection has "
                "been broken. See the original error for more details."
            ) from exc
        finally:
            self._in_transaction = False
        logger.debug("Transaction committed")

    def rollback(self) -> None:
        conn = self._require_open_connection()
        if not self._in_transaction:
            raise InvalidOperationError(
                "The transaction has already been rolled back, committed, "
                "or was never started."
            )
        try:
            conn.rollback()
        except Exception as exc:
            raise InvalidOperationError(
                "The transaction could not be rolled back or the connection has "
                "been broken. See the original error for more details."
            ) from exc
        finally:
            self._in_transaction = False
        logger.debug("Transaction rolled back")

    @contextlib.contextmanager
    def transaction(self) -> Iterator[UnitOfWork]:
        """Provide commit/rollback transaction scope."""

        self.begin_transaction()
        try:
            yield self
        except BaseException:
            if self._in_transaction:
                self.rollback()
            raise
        if self._in_transaction:
            self.commit()

    def close(self) -> None:
        """Roll back an active transaction and close the connection.

        A failing rollback is re-raised after the connection is closed.
        """

        if self._closed:
            return
        conn = self.conn
        try:
            if self._in_transaction:
                logger.debug("Rolling back active transaction on close")
                try:
                    self.rollback()
                except InvalidOperationError:
                    logger.warning("Rollback failed while closing unit of work")
                    raise
        finally:
            self._closed = True
            self._in_transaction = False
            self.conn = None
            close = getattr(conn, "close", None)
            if callable(close):
                close()

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
