"""
Schema models - Columns, statistics and the schema tree

Schema nodes are a dialect-agnostic tree (database -> tables -> columns)
handed to the rendering layer as plain data.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ...constants import UNKNOWN_STAT


@dataclass(frozen=True)
class Column:
    """Column metadata normalized from a dialect's catalog."""
    name: str
    type: str
    nullable: bool = True
    default: Optional[str] = None
    primary_key: bool = False
    extra: str = ""


def format_size(size_bytes: Optional[int]) -> str:
    """Format a byte count as KB with two decimals, or N/A when unknown."""
    if size_bytes is None:
        return UNKNOWN_STAT
    return f"{round(size_bytes / 1024, 2)} KB"


@dataclass
class TableStats:
    """
    Best-effort table statistics.

    Every field is independently optional: None means the catalog could
    not tell, which is not an error.
    """
    size_bytes: Optional[int] = None
    row_count: Optional[int] = None
    collation: Optional[str] = None
    engine: Optional[str] = None
    column_count: int = 0

    @property
    def size(self) -> str:
        return format_size(self.size_bytes)

    def as_dict(self) -> Dict[str, Any]:
        """Statistics map for display, with N/A for unknown values."""
        return {
            "size": self.size,
            "rows": UNKNOWN_STAT if self.row_count is None else self.row_count,
            "collation": self.collation or UNKNOWN_STAT,
            "engine": self.engine or UNKNOWN_STAT,
            "columns": self.column_count,
        }


@dataclass
class DatabaseStats:
    """Best-effort database statistics."""
    size_bytes: Optional[int] = None
    table_count: Optional[int] = None
    collation: Optional[str] = None

    @property
    def size(self) -> str:
        return format_size(self.size_bytes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "tables": UNKNOWN_STAT if self.table_count is None else self.table_count,
            "collation": self.collation or UNKNOWN_STAT,
        }


class SchemaNodeType(Enum):
    """Types of schema nodes."""
    DATABASE = "database"
    TABLE = "table"
    COLUMN = "column"


@dataclass
class SchemaNode:
    """A node in the schema tree."""
    node_type: SchemaNodeType
    name: str
    display_name: str = ""
    children: List["SchemaNode"] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.display_name:
            self.display_name = self.name

    def add_child(self, child: "SchemaNode") -> "SchemaNode":
        """Add a child node and return it."""
        self.children.append(child)
        return child

    def child_count(self) -> int:
        """Return the number of direct children."""
        return len(self.children)
