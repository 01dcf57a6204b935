"""
Base Database Dialect - Abstract base class for dialect-specific SQL

Dialects handle the differences between the supported databases:
- Connecting (DSN parameters, autocommit, default database)
- Value and identifier quoting
- System catalog queries (SHOW ... vs information_schema/pg_catalog vs PRAGMA)
- DDL statement templates (RENAME TABLE vs ALTER TABLE ... RENAME TO, ...)

The rest of the core only talks to this interface.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from ..models import Column, ColumnDefinition, DatabaseStats, TableStats
from ...exceptions import ExecutionError, ValidationError

if TYPE_CHECKING:
    from ..connection import ConnectionHandle
    from ..models import ConnectionDescriptor, QueryResult

import logging
logger = logging.getLogger(__name__)


class DatabaseDialect(ABC):
    """
    Abstract base class for database dialects.

    Dialects are stateless: every operation that needs the database takes
    the ConnectionHandle it should run on.

    Usage:
        dialect = DialectFactory.create("postgres")
        sql = dialect.rename_table_sql("users", "members")
        columns = dialect.list_columns(handle, "members")
    """

    # Capabilities, overridden per dialect
    supports_databases = True
    supports_truncate = True
    supports_move = False
    supports_cross_database_copy = False

    regex_operator = "REGEXP"
    auto_increment_keyword = "AUTO_INCREMENT"

    @property
    @abstractmethod
    def name(self) -> str:
        """Canonical dialect key."""
        pass

    @property
    @abstractmethod
    def quote_char(self) -> str:
        """Character used to quote identifiers."""
        pass

    @property
    def param_marker(self) -> str:
        """Placeholder for bound parameters in catalog queries."""
        return "%s"

    @property
    @abstractmethod
    def driver_errors(self) -> Tuple[type, ...]:
        """Exception types raised by the driver."""
        pass

    # ==================== Connection ====================

    @abstractmethod
    def connect(self, descriptor: "ConnectionDescriptor") -> Any:
        """Open a raw driver connection in autocommit mode."""
        pass

    def initial_database(self, descriptor: "ConnectionDescriptor") -> Optional[str]:
        """Database the connection is scoped to right after connecting."""
        return descriptor.database

    @abstractmethod
    def use_database(self, handle: "ConnectionHandle", database: str) -> str:
        """
        Scope the handle's connection to another database.

        Returns:
            The database name the handle is now scoped to
        """
        pass

    def error_message(self, error: Exception) -> str:
        """The engine's message for a driver error."""
        return str(error).strip()

    # ==================== Quoting ====================

    def quote_identifier(self, identifier: str) -> str:
        """
        Quote a single identifier (database, table or column name).

        Embedded quote characters are doubled; NUL characters are rejected.
        """
        if identifier is None or str(identifier) == "":
            raise ValidationError("Identifier must not be empty")
        identifier = str(identifier)
        if "\x00" in identifier:
            raise ValidationError("Identifier must not contain NUL characters")
        q = self.quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def quote_qualified(self, name: str, database: Optional[str] = None) -> str:
        """Quote a table reference, prefixed with its database when given."""
        if database:
            return f"{self.quote_identifier(database)}.{self.quote_identifier(name)}"
        return self.quote_identifier(name)

    def quote(self, value: Any) -> str:
        """
        Render a value as a SQL literal.

        None becomes NULL, bytes become a binary literal and everything else
        is rendered as an escaped string literal.
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return self.quote_string("1" if value else "0")
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.quote_bytes(bytes(value))
        return self.quote_string(value if isinstance(value, str) else str(value))

    @abstractmethod
    def quote_string(self, text: str) -> str:
        """Escape and quote a string literal."""
        pass

    def quote_bytes(self, data: bytes) -> str:
        return f"X'{data.hex().upper()}'"

    def text_expression(self, quoted_column: str) -> str:
        """Expression usable with LIKE/regex whatever the column type."""
        return quoted_column

    # ==================== Catalog ====================

    @abstractmethod
    def list_databases(self, handle: "ConnectionHandle") -> List[str]:
        pass

    @abstractmethod
    def list_tables(self, handle: "ConnectionHandle") -> List[str]:
        """Tables of the handle's current database."""
        pass

    @abstractmethod
    def list_columns(self, handle: "ConnectionHandle", table: str) -> List[Column]:
        pass

    @abstractmethod
    def table_stats(self, handle: "ConnectionHandle", table: str) -> TableStats:
        """Best-effort statistics; never raises on catalog failures."""
        pass

    @abstractmethod
    def database_stats(self, handle: "ConnectionHandle", database: str) -> DatabaseStats:
        """Best-effort statistics; never raises on catalog failures."""
        pass

    def create_statement(self, handle: "ConnectionHandle", table: str) -> Optional[str]:
        """
        CREATE TABLE statement for an existing table.

        Default implementation rebuilds it from the column list.
        """
        columns = self.list_columns(handle, table)
        if not columns:
            return None
        lines = []
        for column in columns:
            line = f"  {self.quote_identifier(column.name)} {column.type}"
            if not column.nullable:
                line += " NOT NULL"
            if column.default is not None:
                line += f" DEFAULT {column.default}"
            lines.append(line)
        keys = [self.quote_identifier(c.name) for c in columns if c.primary_key]
        if keys:
            lines.append(f"  PRIMARY KEY ({', '.join(keys)})")
        body = ",\n".join(lines)
        return f"CREATE TABLE {self.quote_identifier(table)} (\n{body}\n)"

    # ==================== DDL Templates ====================

    def create_database_sql(self, database: str) -> str:
        return f"CREATE DATABASE {self.quote_identifier(database)}"

    def drop_database_sql(self, database: str) -> str:
        return f"DROP DATABASE {self.quote_identifier(database)}"

    def rename_table_sql(self, old_name: str, new_name: str, database: Optional[str] = None) -> str:
        return (
            f"ALTER TABLE {self.quote_qualified(old_name, database)} "
            f"RENAME TO {self.quote_identifier(new_name)}"
        )

    def drop_table_sql(self, table: str, database: Optional[str] = None) -> str:
        return f"DROP TABLE {self.quote_qualified(table, database)}"

    def truncate_table_sql(self, table: str) -> str:
        return f"TRUNCATE TABLE {self.quote_identifier(table)}"

    @abstractmethod
    def copy_structure_sql(
        self,
        handle: "ConnectionHandle",
        source: str,
        target: str,
        source_database: Optional[str] = None,
        target_database: Optional[str] = None
    ) -> str:
        """Statement creating ``target`` with the structure of ``source``."""
        pass

    def copy_data_sql(
        self,
        source: str,
        target: str,
        source_database: Optional[str] = None,
        target_database: Optional[str] = None
    ) -> str:
        return (
            f"INSERT INTO {self.quote_qualified(target, target_database)} "
            f"SELECT * FROM {self.quote_qualified(source, source_database)}"
        )

    def table_options(self) -> str:
        """Clause appended after the column list of CREATE TABLE."""
        return ""

    def create_table_sql(self, name: str, columns: Sequence[ColumnDefinition]) -> str:
        definitions = ",\n  ".join(self.column_definition_sql(c) for c in columns)
        return f"CREATE TABLE {self.quote_identifier(name)} (\n  {definitions}\n){self.table_options()}"

    def add_column_sql(self, table: str, column: ColumnDefinition) -> str:
        return (
            f"ALTER TABLE {self.quote_identifier(table)} "
            f"ADD COLUMN {self.column_definition_sql(column)}"
        )

    def column_definition_sql(self, column: ColumnDefinition) -> str:
        """
        Render one column definition.

        A default given as the text NULL (any case) renders as DEFAULT NULL,
        never as the string 'NULL'.
        """
        col_type = column.type.strip()
        if column.length not in (None, ""):
            col_type += f"({str(column.length).strip()})"

        parts = [self.quote_identifier(column.name), col_type]
        forced_not_null = column.auto_increment or column.primary_key
        parts.append("NULL" if column.nullable and not forced_not_null else "NOT NULL")

        if column.has_default:
            if column.default_is_null:
                parts.append("DEFAULT NULL")
            else:
                parts.append(f"DEFAULT {self.quote(column.default)}")

        parts.extend(self._key_clauses(column))
        return " ".join(parts)

    def _key_clauses(self, column: ColumnDefinition) -> List[str]:
        clauses = []
        if column.auto_increment:
            clauses.append(self.auto_increment_keyword)
        if column.primary_key:
            clauses.append("PRIMARY KEY")
        return clauses

    # ==================== Utility Methods ====================

    def _best_effort(self, handle: "ConnectionHandle", query: str, params: tuple = None) -> dict:
        """Run a catalog query and return its first row, or {} on failure."""
        try:
            return handle.query(query, params).first()
        except ExecutionError as e:
            logger.warning(f"Catalog query failed on {self.name}: {e}")
            return {}

    @staticmethod
    def _first_column(result: "QueryResult") -> List[Any]:
        """Values of the first column of a result."""
        if not result.columns:
            return []
        key = result.columns[0]
        return [row[key] for row in result.rows]

    @staticmethod
    def _to_int(value: Any) -> Optional[int]:
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
