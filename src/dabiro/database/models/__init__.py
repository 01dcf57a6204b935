"""
Database Models - Dataclasses passed between the core and its callers

All models are re-exported here for convenience:
    from dabiro.database.models import ConnectionDescriptor, QueryRequest, ...
"""

from .connection_descriptor import ConnectionDescriptor
from .schema import (
    Column,
    TableStats,
    DatabaseStats,
    SchemaNode,
    SchemaNodeType,
    format_size,
)
from .query import FilterOperator, FilterPredicate, QueryRequest, Page
from .ddl import (
    ColumnDefinition,
    DDLIntent,
    CreateDatabase,
    DropDatabase,
    CreateTable,
    AddColumn,
    RenameTable,
    DropTable,
    TruncateTable,
    CopyTable,
    MoveTable,
    DDLResult,
)
from .results import (
    QueryResult,
    StatementResult,
    BulkResult,
    SearchHit,
    ExportResult,
    StepReport,
)

__all__ = [
    "ConnectionDescriptor",
    "Column",
    "TableStats",
    "DatabaseStats",
    "SchemaNode",
    "SchemaNodeType",
    "format_size",
    "FilterOperator",
    "FilterPredicate",
    "QueryRequest",
    "Page",
    "ColumnDefinition",
    "DDLIntent",
    "CreateDatabase",
    "DropDatabase",
    "CreateTable",
    "AddColumn",
    "RenameTable",
    "DropTable",
    "TruncateTable",
    "CopyTable",
    "MoveTable",
    "DDLResult",
    "QueryResult",
    "StatementResult",
    "BulkResult",
    "SearchHit",
    "ExportResult",
    "StepReport",
]
