"""
PostgreSQL Dialect - PostgreSQL-specific SQL operations
"""

from typing import TYPE_CHECKING, List, Optional

import psycopg2

from .base import DatabaseDialect
from ..models import Column, DatabaseStats, TableStats
from ...constants import CONNECTION_TIMEOUT_S, POSTGRES, POSTGRES_ADMIN_DATABASE
from ...exceptions import ValidationError

if TYPE_CHECKING:
    from ..connection import ConnectionHandle
    from ..models import ConnectionDescriptor

import logging
logger = logging.getLogger(__name__)


class PostgreSQLDialect(DatabaseDialect):
    """
    Dialect for PostgreSQL databases.

    Tables are listed from the connection's current schema. A connection is
    bound to one database, so switching databases reconnects.
    """

    regex_operator = "~"
    auto_increment_keyword = "GENERATED BY DEFAULT AS IDENTITY"

    @property
    def name(self) -> str:
        return POSTGRES

    @property
    def quote_char(self) -> str:
        return '"'

    @property
    def driver_errors(self):
        return (psycopg2.Error,)

    def connect(self, descriptor: "ConnectionDescriptor"):
        host, port = descriptor.server_address()
        connection = psycopg2.connect(
            host=host,
            port=port,
            user=descriptor.user,
            password=descriptor.password,
            dbname=descriptor.database or POSTGRES_ADMIN_DATABASE,
            connect_timeout=CONNECTION_TIMEOUT_S,
        )
        connection.autocommit = True
        return connection

    def initial_database(self, descriptor: "ConnectionDescriptor") -> Optional[str]:
        return descriptor.database or POSTGRES_ADMIN_DATABASE

    def use_database(self, handle: "ConnectionHandle", database: str) -> str:
        if database != handle.current_database:
            handle.reconnect(database)
        return database

    def error_message(self, error: Exception) -> str:
        message = getattr(error, "pgerror", None) or str(error)
        return message.strip()

    def quote_string(self, text: str) -> str:
        if "\x00" in text:
            raise ValidationError("PostgreSQL text values cannot contain NUL characters")
        escaped = text.replace("'", "''")
        if "\\" in escaped:
            return f"E'{escaped.replace(chr(92), chr(92) * 2)}'"
        return f"'{escaped}'"

    def quote_bytes(self, data: bytes) -> str:
        return f"'\\x{data.hex()}'::bytea"

    def text_expression(self, quoted_column: str) -> str:
        return f"CAST({quoted_column} AS TEXT)"

    # ==================== Catalog ====================

    def list_databases(self, handle: "ConnectionHandle") -> List[str]:
        result = handle.query(
            "SELECT datname FROM pg_database WHERE datistemplate = false ORDER BY datname"
        )
        return self._first_column(result)

    def list_tables(self, handle: "ConnectionHandle") -> List[str]:
        result = handle.query(
            "SELECT tablename FROM pg_tables "
            "WHERE schemaname = current_schema() ORDER BY tablename"
        )
        return self._first_column(result)

    def list_columns(self, handle: "ConnectionHandle", table: str) -> List[Column]:
        result = handle.query(
            "SELECT c.column_name, c.data_type, c.is_nullable, c.column_default, "
            "EXISTS ("
            "  SELECT 1 FROM information_schema.table_constraints tc "
            "  JOIN information_schema.key_column_usage k "
            "    ON k.constraint_name = tc.constraint_name "
            "   AND k.table_schema = tc.table_schema "
            "  WHERE tc.constraint_type = 'PRIMARY KEY' "
            "    AND tc.table_schema = c.table_schema "
            "    AND tc.table_name = c.table_name "
            "    AND k.column_name = c.column_name"
            ") AS is_primary "
            "FROM information_schema.columns c "
            "WHERE c.table_schema = current_schema() AND c.table_name = %s "
            "ORDER BY c.ordinal_position",
            (table,)
        )
        return [
            Column(
                name=row["column_name"],
                type=row["data_type"],
                nullable=row["is_nullable"] == "YES",
                default=row["column_default"],
                primary_key=bool(row["is_primary"]),
            )
            for row in result.rows
        ]

    def table_stats(self, handle: "ConnectionHandle", table: str) -> TableStats:
        size_row = self._best_effort(
            handle,
            "SELECT pg_total_relation_size(quote_ident(%s)::regclass) AS size",
            (table,)
        )
        rows_row = self._best_effort(
            handle,
            "SELECT reltuples::bigint AS estimate FROM pg_class "
            "WHERE relname = %s AND relkind = 'r'",
            (table,)
        )
        collation_row = self._best_effort(
            handle,
            "SELECT datcollate FROM pg_database WHERE datname = current_database()"
        )
        row_count = self._to_int(rows_row.get("estimate"))
        # reltuples is -1 for tables never analyzed
        if row_count is not None and row_count < 0:
            row_count = None
        return TableStats(
            size_bytes=self._to_int(size_row.get("size")),
            row_count=row_count,
            collation=collation_row.get("datcollate"),
        )

    def database_stats(self, handle: "ConnectionHandle", database: str) -> DatabaseStats:
        row = self._best_effort(
            handle,
            "SELECT pg_database_size(datname) AS size, datcollate "
            "FROM pg_database WHERE datname = %s",
            (database,)
        )
        table_count = None
        if database == handle.current_database:
            count_row = self._best_effort(
                handle,
                "SELECT COUNT(*) AS table_count FROM pg_tables WHERE schemaname = current_schema()"
            )
            table_count = self._to_int(count_row.get("table_count"))
        return DatabaseStats(
            size_bytes=self._to_int(row.get("size")),
            table_count=table_count,
            collation=row.get("datcollate"),
        )

    # ==================== DDL Templates ====================

    def copy_structure_sql(
        self,
        handle: "ConnectionHandle",
        source: str,
        target: str,
        source_database: Optional[str] = None,
        target_database: Optional[str] = None
    ) -> str:
        return (
            f"CREATE TABLE {self.quote_identifier(target)} "
            f"(LIKE {self.quote_identifier(source)} INCLUDING ALL)"
        )

    def copy_data_sql(
        self,
        source: str,
        target: str,
        source_database: Optional[str] = None,
        target_database: Optional[str] = None
    ) -> str:
        return super().copy_data_sql(source, target)

    def drop_table_sql(self, table: str, database: Optional[str] = None) -> str:
        return f"DROP TABLE {self.quote_identifier(table)}"
