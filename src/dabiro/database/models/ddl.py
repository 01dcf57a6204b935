"""
DDL intents - Structural operations requested by a caller

Each intent is constructed from caller input, validated, executed once by
the DDL operator and then discarded.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional

from ...exceptions import ValidationError

# Column types are embedded verbatim, so they are restricted to words
# optionally followed by a numeric or quoted-literal argument list.
_TYPE_RE = re.compile(
    r"^[A-Za-z][A-Za-z0-9_ ]*"
    r"(\(\s*(\d+(\s*,\s*\d+)?|'[^']*'(\s*,\s*'[^']*')*)\s*\))?"
    r"(\s+[A-Za-z]+)*$"
)
_LENGTH_RE = re.compile(r"^\s*(\d+(\s*,\s*\d+)?|'[^']*'(\s*,\s*'[^']*')*)\s*$")


def _require(value: Optional[str], what: str) -> None:
    if not value or not str(value).strip():
        raise ValidationError(f"{what} is required")


@dataclass
class ColumnDefinition:
    """A column as supplied to CreateTable or AddColumn."""
    name: str
    type: str
    length: Optional[str] = None
    nullable: bool = True
    default: Optional[str] = None
    auto_increment: bool = False
    primary_key: bool = False

    def validate(self) -> None:
        _require(self.name, "Column name")
        _require(self.type, "Column type")
        if not _TYPE_RE.match(self.type.strip()):
            raise ValidationError(f"Invalid column type: {self.type}")
        if self.length not in (None, "") and not _LENGTH_RE.match(str(self.length)):
            raise ValidationError(f"Invalid column length: {self.length}")

    @property
    def has_default(self) -> bool:
        return self.default is not None and self.default != ""

    @property
    def default_is_null(self) -> bool:
        """A default given as the literal text NULL means SQL NULL."""
        return self.has_default and str(self.default).strip().upper() == "NULL"


class DDLIntent(ABC):
    """Base class for structural intents."""

    #: Human readable operation name used in errors and logs
    operation = "DDL"

    @abstractmethod
    def validate(self) -> None:
        """Raise ValidationError when the intent cannot be executed."""
        pass


@dataclass
class CreateDatabase(DDLIntent):
    name: str
    operation = "Create database"

    def validate(self) -> None:
        _require(self.name, "Database name")


@dataclass
class DropDatabase(DDLIntent):
    name: str
    operation = "Drop database"

    def validate(self) -> None:
        _require(self.name, "Database name")


@dataclass
class CreateTable(DDLIntent):
    name: str
    columns: List[ColumnDefinition] = field(default_factory=list)
    database: Optional[str] = None
    operation = "Create table"

    def validate(self) -> None:
        _require(self.name, "Table name")
        if not self.columns:
            raise ValidationError("At least one column is required")
        for column in self.columns:
            column.validate()


@dataclass
class AddColumn(DDLIntent):
    table: str
    column: ColumnDefinition
    operation = "Add column"

    def validate(self) -> None:
        _require(self.table, "Table name")
        if self.column is None:
            raise ValidationError("Column definition is required")
        self.column.validate()


@dataclass
class RenameTable(DDLIntent):
    old_name: str
    new_name: str
    operation = "Rename table"

    def validate(self) -> None:
        _require(self.old_name, "Current table name")
        _require(self.new_name, "New table name")


@dataclass
class DropTable(DDLIntent):
    table: str
    operation = "Drop table"

    def validate(self) -> None:
        _require(self.table, "Table name")


@dataclass
class TruncateTable(DDLIntent):
    table: str
    operation = "Truncate table"

    def validate(self) -> None:
        _require(self.table, "Table name")


@dataclass
class CopyTable(DDLIntent):
    source: str
    target: str
    copy_data: bool = False
    source_database: Optional[str] = None
    target_database: Optional[str] = None
    operation = "Copy table"

    def validate(self) -> None:
        _require(self.source, "Source table")
        _require(self.target, "Target table")
        same_db = (self.source_database or None) == (self.target_database or None)
        if same_db and self.source == self.target:
            raise ValidationError("Source and target tables are identical")


@dataclass
class MoveTable(DDLIntent):
    source_database: str
    source_table: str
    target_database: str
    target_table: str
    operation = "Move table"

    def validate(self) -> None:
        _require(self.source_database, "Source database")
        _require(self.source_table, "Source table")
        _require(self.target_database, "Target database")
        _require(self.target_table, "Target table")
        if (self.source_database, self.source_table) == (self.target_database, self.target_table):
            raise ValidationError("Source and target tables are identical")


@dataclass
class DDLResult:
    """Statements an intent executed, in order."""
    operation: str
    statements: List[str] = field(default_factory=list)
    details: Any = None
