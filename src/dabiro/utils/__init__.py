"""
Utility helpers shared by the core.
"""

from .connection_error_handler import (
    ConnectionErrorInfo,
    parse_connection_error,
    format_connection_error,
)
from .sql_splitter import SQLStatement, split_sql_statements, is_select_statement

__all__ = [
    "ConnectionErrorInfo",
    "parse_connection_error",
    "format_connection_error",
    "SQLStatement",
    "split_sql_statements",
    "is_select_statement",
]
