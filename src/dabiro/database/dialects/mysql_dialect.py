"""
MySQL Dialect - MySQL/MariaDB-specific SQL operations
"""

from typing import TYPE_CHECKING, List, Optional

import pymysql
from pymysql.converters import escape_string

from .base import DatabaseDialect
from ..models import Column, DatabaseStats, TableStats
from ...constants import CONNECTION_TIMEOUT_S, MYSQL, MYSQL_CHARSET, MYSQL_DEFAULT_ENGINE

if TYPE_CHECKING:
    from ..connection import ConnectionHandle
    from ..models import ConnectionDescriptor

import logging
logger = logging.getLogger(__name__)


class MySQLDialect(DatabaseDialect):
    """Dialect for MySQL and MariaDB servers."""

    supports_move = True
    supports_cross_database_copy = True

    @property
    def name(self) -> str:
        return MYSQL

    @property
    def quote_char(self) -> str:
        return "`"

    @property
    def driver_errors(self):
        return (pymysql.MySQLError,)

    def connect(self, descriptor: "ConnectionDescriptor"):
        host, port = descriptor.server_address()
        return pymysql.connect(
            host=host,
            port=port,
            user=descriptor.user,
            password=descriptor.password,
            database=descriptor.database,
            charset=MYSQL_CHARSET,
            connect_timeout=CONNECTION_TIMEOUT_S,
            autocommit=True,
        )

    def use_database(self, handle: "ConnectionHandle", database: str) -> str:
        handle.execute(f"USE {self.quote_identifier(database)}")
        return database

    def error_message(self, error: Exception) -> str:
        # pymysql errors carry (code, message)
        if len(error.args) > 1:
            return str(error.args[1])
        return super().error_message(error)

    def quote_string(self, text: str) -> str:
        return f"'{escape_string(text)}'"

    # ==================== Catalog ====================

    def list_databases(self, handle: "ConnectionHandle") -> List[str]:
        return self._first_column(handle.query("SHOW DATABASES"))

    def list_tables(self, handle: "ConnectionHandle") -> List[str]:
        return self._first_column(handle.query("SHOW TABLES"))

    def list_columns(self, handle: "ConnectionHandle", table: str) -> List[Column]:
        result = handle.query(f"SHOW COLUMNS FROM {self.quote_identifier(table)}")
        return [
            Column(
                name=row["Field"],
                type=row["Type"],
                nullable=str(row.get("Null", "YES")).upper() == "YES",
                default=None if row.get("Default") is None else str(row["Default"]),
                primary_key=row.get("Key") == "PRI",
                extra=row.get("Extra") or "",
            )
            for row in result.rows
        ]

    def table_stats(self, handle: "ConnectionHandle", table: str) -> TableStats:
        row = self._best_effort(
            handle,
            "SELECT ENGINE, TABLE_ROWS, DATA_LENGTH, INDEX_LENGTH, TABLE_COLLATION "
            "FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s",
            (table,)
        )
        size = None
        if row.get("DATA_LENGTH") is not None:
            size = int(row["DATA_LENGTH"]) + int(row.get("INDEX_LENGTH") or 0)
        return TableStats(
            size_bytes=size,
            row_count=self._to_int(row.get("TABLE_ROWS")),
            collation=row.get("TABLE_COLLATION"),
            engine=row.get("ENGINE"),
        )

    def database_stats(self, handle: "ConnectionHandle", database: str) -> DatabaseStats:
        row = self._best_effort(
            handle,
            "SELECT SUM(DATA_LENGTH + INDEX_LENGTH) AS total_size, COUNT(*) AS table_count, "
            "MAX(TABLE_COLLATION) AS collation_name "
            "FROM information_schema.TABLES WHERE TABLE_SCHEMA = %s",
            (database,)
        )
        return DatabaseStats(
            size_bytes=self._to_int(row.get("total_size")),
            table_count=self._to_int(row.get("table_count")),
            collation=row.get("collation_name"),
        )

    def create_statement(self, handle: "ConnectionHandle", table: str) -> Optional[str]:
        row = handle.query(f"SHOW CREATE TABLE {self.quote_identifier(table)}").first()
        return row.get("Create Table")

    # ==================== DDL Templates ====================

    def rename_table_sql(self, old_name: str, new_name: str, database: Optional[str] = None) -> str:
        return (
            f"RENAME TABLE {self.quote_qualified(old_name, database)} "
            f"TO {self.quote_qualified(new_name, database)}"
        )

    def table_options(self) -> str:
        return f" ENGINE={MYSQL_DEFAULT_ENGINE}"

    def copy_structure_sql(
        self,
        handle: "ConnectionHandle",
        source: str,
        target: str,
        source_database: Optional[str] = None,
        target_database: Optional[str] = None
    ) -> str:
        return (
            f"CREATE TABLE {self.quote_qualified(target, target_database)} "
            f"LIKE {self.quote_qualified(source, source_database)}"
        )
