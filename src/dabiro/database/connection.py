"""
Connection Module - One live connection to a database server or file.

Provides:
- ConnectionHandle: a driver connection bound to its dialect, with the
  database it is currently scoped to
- Statement execution returning rows as column -> value mappings, with
  driver errors raised as ExecutionError
"""
import itertools
from typing import Any, Optional, Sequence

from .dialects import DatabaseDialect, DialectFactory
from .models import ConnectionDescriptor, QueryResult
from ..exceptions import DatabaseConnectionError, DabiroError, ExecutionError, ValidationError
from ..utils.connection_error_handler import parse_connection_error

import logging
logger = logging.getLogger(__name__)

# Process-unique handle tokens; unlike id() they are never reused
_handle_tokens = itertools.count(1)


class ConnectionHandle:
    """
    An open connection plus its dialect.

    Every statement runs in autocommit mode. The handle is not safe for
    concurrent use; callers serialize access.

    Usage:
        with ConnectionHandle.open(descriptor) as handle:
            handle.use_database("shop")
            result = handle.query("SELECT * FROM `users`")
            for row in result.rows:
                print(row["name"])
    """

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        dialect: DatabaseDialect,
        connection: Any,
        current_database: Optional[str] = None
    ):
        self.descriptor = descriptor
        self.dialect = dialect
        self.connection = connection
        self.current_database = current_database
        self.token = next(_handle_tokens)
        self._closed = False

    @classmethod
    def open(cls, descriptor: ConnectionDescriptor) -> "ConnectionHandle":
        """
        Connect using a descriptor.

        Raises:
            ValidationError: No dialect is registered for the descriptor
            DatabaseConnectionError: The driver could not connect
        """
        dialect = DialectFactory.create(descriptor.dialect)
        if dialect is None:
            raise ValidationError(f"Unsupported database type: {descriptor.dialect}")

        connection = cls._connect(dialect, descriptor)
        handle = cls(descriptor, dialect, connection, dialect.initial_database(descriptor))
        logger.info(f"Connected to {descriptor.dialect} at {descriptor.host}")
        return handle

    @staticmethod
    def _connect(dialect: DatabaseDialect, descriptor: ConnectionDescriptor) -> Any:
        try:
            return dialect.connect(descriptor)
        except dialect.driver_errors + (OSError,) as e:
            info = parse_connection_error(e, dialect.name)
            logger.error(f"Connection to {descriptor.dialect} at {descriptor.host} failed: {e}")
            raise DatabaseConnectionError(
                dialect.error_message(e), dialect=dialect.name, info=info
            ) from e

    @property
    def closed(self) -> bool:
        return self._closed

    # ==================== Execution ====================

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """
        Run one statement and return its rows.

        Args:
            sql: Statement text
            params: Bound parameters in the dialect's placeholder style

        Returns:
            QueryResult; statements without a result set have no columns

        Raises:
            ExecutionError: The engine rejected the statement
        """
        self._ensure_open()
        cursor = self.connection.cursor()
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, tuple(params))

            columns, rows = [], []
            if cursor.description:
                columns = [desc[0] for desc in cursor.description]
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            return QueryResult(columns=columns, rows=rows, rowcount=cursor.rowcount)
        except self.dialect.driver_errors as e:
            message = self.dialect.error_message(e)
            logger.error(f"Statement failed on {self.dialect.name}: {message}")
            raise ExecutionError(message, sql=sql) from e
        finally:
            cursor.close()

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Run one statement and return the affected row count."""
        return self.query(sql, params).rowcount

    def scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """First value of the first row, or None."""
        result = self.query(sql, params)
        if not result.rows:
            return None
        return result.rows[0][result.columns[0]]

    # ==================== Scope ====================

    def use_database(self, database: str) -> None:
        """
        Scope subsequent statements to ``database``.

        On PostgreSQL this reconnects; on SQLite it is a no-op.
        """
        if not database:
            raise ValidationError("A database name is required")
        self._ensure_open()
        self.current_database = self.dialect.use_database(self, database)
        logger.debug(f"Using database {self.current_database}")

    def reconnect(self, database: Optional[str]) -> None:
        """Replace the driver connection with one to another database."""
        self._ensure_open()
        descriptor = self.descriptor.with_database(database)
        connection = self._connect(self.dialect, descriptor)
        old, self.connection = self.connection, connection
        self.current_database = self.dialect.initial_database(descriptor)
        self._close_quietly(old)

    # ==================== Quoting ====================

    def quote(self, value: Any) -> str:
        return self.dialect.quote(value)

    def quote_identifier(self, identifier: str) -> str:
        return self.dialect.quote_identifier(identifier)

    # ==================== Lifecycle ====================

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._close_quietly(self.connection)
        logger.debug(f"Closed {self.dialect.name} connection")

    def _close_quietly(self, connection: Any) -> None:
        try:
            connection.close()
        except self.dialect.driver_errors as e:
            logger.warning(f"Error while closing {self.dialect.name} connection: {e}")

    def _ensure_open(self) -> None:
        if self._closed:
            raise DabiroError("Connection is closed")

    def __enter__(self) -> "ConnectionHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<ConnectionHandle {self.dialect.name} {self.descriptor.host} db={self.current_database} {state}>"
