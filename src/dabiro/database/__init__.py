"""
Database layer - Connections, dialects, introspection and mutation.
"""

from .connection import ConnectionHandle
from .introspector import SchemaIntrospector
from .query_builder import QueryBuilder
from .ddl import DDLOperator
from .bulk import BulkOperator, GlobalSearch
from .sql_runner import SqlRunner
from .dialects import DatabaseDialect, DialectFactory

__all__ = [
    "ConnectionHandle",
    "SchemaIntrospector",
    "QueryBuilder",
    "DDLOperator",
    "BulkOperator",
    "GlobalSearch",
    "SqlRunner",
    "DatabaseDialect",
    "DialectFactory",
]
