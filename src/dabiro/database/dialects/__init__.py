"""
Database Dialects - Database-specific SQL operations

Usage:
    from dabiro.database.dialects import DialectFactory

    dialect = DialectFactory.create("postgresql")
    sql = dialect.rename_table_sql("users", "members")
    columns = dialect.list_columns(handle, "members")
"""

from .base import DatabaseDialect
from .factory import DialectFactory

from .mysql_dialect import MySQLDialect
from .postgresql_dialect import PostgreSQLDialect
from .sqlite_dialect import SQLiteDialect

__all__ = [
    # Base class
    "DatabaseDialect",

    # Factory
    "DialectFactory",

    # Implementations
    "MySQLDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
]
