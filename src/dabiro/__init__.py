"""
Dabiro - Multi-dialect database administration core
MySQL/MariaDB, PostgreSQL and SQLite
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("dabiro-core")
except PackageNotFoundError:
    # Package not installed
    __version__ = "0.1.0"

from .database.models import (
    ConnectionDescriptor,
    QueryRequest,
    FilterPredicate,
    FilterOperator,
    ColumnDefinition,
)
from .database import ConnectionHandle
from .session import AdminSession
from .exceptions import (
    DabiroError,
    DatabaseConnectionError,
    UnsupportedOperationError,
    ExecutionError,
    ValidationError,
    SessionExpiredError,
)

__all__ = [
    "__version__",
    "AdminSession",
    "ConnectionHandle",
    "ConnectionDescriptor",
    "QueryRequest",
    "FilterPredicate",
    "FilterOperator",
    "ColumnDefinition",
    "DabiroError",
    "DatabaseConnectionError",
    "UnsupportedOperationError",
    "ExecutionError",
    "ValidationError",
    "SessionExpiredError",
]
