"""
SQLite Dialect - SQLite-specific SQL operations
"""

import math
import os
import re
import sqlite3
from typing import TYPE_CHECKING, Any, List, Optional

from .base import DatabaseDialect
from ..models import Column, ColumnDefinition, DatabaseStats, TableStats
from ...constants import CONNECTION_TIMEOUT_S, SQLITE, SQLITE_MAIN_DATABASE
from ...exceptions import ExecutionError, ValidationError

if TYPE_CHECKING:
    from ..connection import ConnectionHandle
    from ..models import ConnectionDescriptor

import logging
logger = logging.getLogger(__name__)

# Name token following CREATE TABLE [IF NOT EXISTS] in a stored statement
_CREATE_NAME_RE = re.compile(
    r'^(\s*CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?)'
    r'("(?:[^"]|"")+"|`(?:[^`]|``)+`|\[[^\]]+\]|[^\s(]+)',
    re.IGNORECASE
)


def _regexp(pattern, value) -> bool:
    """REGEXP implementation: ``value REGEXP pattern``."""
    if pattern is None or value is None:
        return False
    return re.search(pattern, str(value)) is not None


class SQLiteDialect(DatabaseDialect):
    """
    Dialect for SQLite database files.

    A file holds a single logical database named "main"; database-level
    operations are unavailable.
    """

    supports_databases = False
    supports_truncate = False

    @property
    def name(self) -> str:
        return SQLITE

    @property
    def quote_char(self) -> str:
        return "`"

    @property
    def param_marker(self) -> str:
        return "?"

    @property
    def driver_errors(self):
        return (sqlite3.Error,)

    def connect(self, descriptor: "ConnectionDescriptor"):
        connection = sqlite3.connect(
            descriptor.path,
            timeout=CONNECTION_TIMEOUT_S,
            isolation_level=None,
        )
        connection.create_function("REGEXP", 2, _regexp, deterministic=True)
        return connection

    def initial_database(self, descriptor: "ConnectionDescriptor") -> Optional[str]:
        return SQLITE_MAIN_DATABASE

    def use_database(self, handle: "ConnectionHandle", database: str) -> str:
        return SQLITE_MAIN_DATABASE

    def quote(self, value: Any) -> str:
        """
        Render a value as a SQL literal.

        Python ints and finite floats are emitted as bare numeric literals
        so they keep their storage class in columns without affinity.
        """
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, float) and math.isfinite(value):
            return repr(value)
        return super().quote(value)

    def quote_string(self, text: str) -> str:
        if "\x00" in text:
            raise ValidationError("SQLite text literals cannot contain NUL characters")
        return "'" + text.replace("'", "''") + "'"

    # ==================== Catalog ====================

    def list_databases(self, handle: "ConnectionHandle") -> List[str]:
        return [SQLITE_MAIN_DATABASE]

    def list_tables(self, handle: "ConnectionHandle") -> List[str]:
        result = handle.query(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\' "
            "ORDER BY name"
        )
        return self._first_column(result)

    def list_columns(self, handle: "ConnectionHandle", table: str) -> List[Column]:
        result = handle.query(f"PRAGMA table_info({self.quote_identifier(table)})")
        return [
            Column(
                name=row["name"],
                type=row["type"] or "",
                nullable=not row["notnull"],
                default=row["dflt_value"],
                primary_key=bool(row["pk"]),
            )
            for row in result.rows
        ]

    def table_stats(self, handle: "ConnectionHandle", table: str) -> TableStats:
        row = self._best_effort(
            handle,
            f"SELECT COUNT(*) AS total FROM {self.quote_identifier(table)}"
        )
        return TableStats(
            size_bytes=self._file_size(handle),
            row_count=self._to_int(row.get("total")),
        )

    def database_stats(self, handle: "ConnectionHandle", database: str) -> DatabaseStats:
        try:
            table_count = len(self.list_tables(handle))
        except ExecutionError as e:
            logger.warning(f"Could not count SQLite tables: {e}")
            table_count = None
        return DatabaseStats(size_bytes=self._file_size(handle), table_count=table_count)

    def create_statement(self, handle: "ConnectionHandle", table: str) -> Optional[str]:
        row = handle.query(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table,)
        ).first()
        return row.get("sql")

    # ==================== DDL Templates ====================

    def truncate_table_sql(self, table: str) -> str:
        return f"DELETE FROM {self.quote_identifier(table)}"

    def drop_table_sql(self, table: str, database: Optional[str] = None) -> str:
        return f"DROP TABLE {self.quote_identifier(table)}"

    def copy_structure_sql(
        self,
        handle: "ConnectionHandle",
        source: str,
        target: str,
        source_database: Optional[str] = None,
        target_database: Optional[str] = None
    ) -> str:
        """Reuse the stored CREATE statement of ``source`` under the new name."""
        create_sql = self.create_statement(handle, source)
        if not create_sql:
            raise ExecutionError(f"no such table: {source}")
        renamed, count = _CREATE_NAME_RE.subn(
            lambda m: m.group(1) + self.quote_identifier(target), create_sql, count=1
        )
        if not count:
            raise ExecutionError(f"Could not parse CREATE statement of {source}")
        return renamed

    def copy_data_sql(
        self,
        source: str,
        target: str,
        source_database: Optional[str] = None,
        target_database: Optional[str] = None
    ) -> str:
        return super().copy_data_sql(source, target)

    def _key_clauses(self, column: ColumnDefinition) -> List[str]:
        # AUTOINCREMENT is only valid on an INTEGER PRIMARY KEY
        if column.auto_increment:
            return ["PRIMARY KEY", "AUTOINCREMENT"]
        return ["PRIMARY KEY"] if column.primary_key else []

    # ==================== Utility Methods ====================

    @staticmethod
    def _file_size(handle: "ConnectionHandle") -> Optional[int]:
        path = handle.descriptor.path
        try:
            return os.path.getsize(path)
        except OSError:
            return None
