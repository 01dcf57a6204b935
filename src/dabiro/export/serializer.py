"""
Export Serializer - Render tables, databases or query text as downloads.

Every export is built eagerly in memory from a snapshot read at call time
and returned as bytes plus a suggested filename and MIME type.
"""
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from .renderers import DATABASE_RENDERERS, TABLE_RENDERERS, ExportContext, TableSnapshot
from ..constants import (
    EXPORT_EXTENSIONS,
    EXPORT_FORMATS,
    EXPORT_HEADER_TIME_FORMAT,
    EXPORT_MIME_TYPES,
    EXPORT_TIMESTAMP_FORMAT,
)
from ..database.connection import ConnectionHandle
from ..database.introspector import SchemaIntrospector
from ..database.models import ExportResult
from ..exceptions import ValidationError

import logging
logger = logging.getLogger(__name__)

_FILENAME_UNSAFE = re.compile(r"[^\w.\-]+")

# CSV carries a byte-order mark so spreadsheets detect UTF-8
_ENCODINGS = {"csv": "utf-8-sig"}


class ExportSerializer:
    """
    Produces export files for tables, databases and SQL text.

    Usage:
        serializer = ExportSerializer(introspector)
        result = serializer.export_table(handle, "users", "csv")
        Path(result.filename).write_bytes(result.content)
    """

    def __init__(
        self,
        introspector: Optional[SchemaIntrospector] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the serializer.

        Args:
            introspector: Used to list tables and read CREATE statements
            clock: Returns the export time
        """
        self.introspector = introspector or SchemaIntrospector()
        self.clock = clock

    # ==================== Public API ====================

    def export_table(
        self,
        handle: ConnectionHandle,
        table: str,
        fmt: str,
        database: Optional[str] = None
    ) -> ExportResult:
        """
        Export every row of a table.

        Raises:
            ValidationError: Unknown format
            ExecutionError: The table could not be read
        """
        fmt = self._check_format(fmt)
        if database:
            handle.use_database(database)

        snapshot = self._snapshot(handle, table, with_create=fmt == "sql")
        now = self.clock()
        context = self._context(handle, now)
        text = TABLE_RENDERERS[fmt](context, snapshot)

        filename = self._filename([context.database, table], now, fmt)
        logger.info(f"Exported {len(snapshot.rows)} row(s) of {table} as {fmt}")
        return self._result(text, filename, fmt, len(snapshot.rows))

    def export_rows(
        self,
        handle: ConnectionHandle,
        table: str,
        columns: Sequence[str],
        rows: Sequence[Dict[str, Any]],
        fmt: str
    ) -> ExportResult:
        """
        Export an already fetched result set (e.g. a filtered page).

        The SQL format renders INSERT statements only.
        """
        fmt = self._check_format(fmt)
        snapshot = TableSnapshot(name=table, columns=list(columns), rows=list(rows))
        now = self.clock()
        context = self._context(handle, now)
        text = TABLE_RENDERERS[fmt](context, snapshot)

        filename = self._filename([context.database, table], now, fmt)
        logger.info(f"Exported {len(snapshot.rows)} row(s) of {table} as {fmt}")
        return self._result(text, filename, fmt, len(snapshot.rows))

    def export_database(self, handle: ConnectionHandle, database: str, fmt: str) -> ExportResult:
        """
        Export every table of a database, one section per table.

        Raises:
            ValidationError: Unknown format
            ExecutionError: A table could not be read
        """
        fmt = self._check_format(fmt)
        tables = self.introspector.list_tables(handle, database)
        snapshots = [self._snapshot(handle, table, with_create=fmt == "sql") for table in tables]

        now = self.clock()
        context = self._context(handle, now)
        text = DATABASE_RENDERERS[fmt](context, snapshots)

        row_count = sum(len(snapshot.rows) for snapshot in snapshots)
        filename = self._filename([context.database], now, fmt)
        logger.info(f"Exported database {context.database} ({len(snapshots)} table(s)) as {fmt}")
        return self._result(text, filename, fmt, row_count)

    def export_query_text(self, sql: str, database: Optional[str] = None) -> ExportResult:
        """Wrap user SQL in a commented header as a downloadable .sql file."""
        if not sql or not sql.strip():
            raise ValidationError("There is no SQL text to export")
        now = self.clock()
        lines = [
            "-- SQL query exported from Dabiro",
            f"-- Date: {now.strftime(EXPORT_HEADER_TIME_FORMAT)}",
        ]
        if database:
            lines.append(f"-- Database: {database}")
        lines.extend(["", sql.strip(), ""])
        filename = self._filename(["query"], now, "sql")
        return self._result("\n".join(lines), filename, "sql", 0)

    # ==================== Helpers ====================

    @staticmethod
    def _check_format(fmt: str) -> str:
        normalized = (fmt or "").strip().lower()
        if normalized not in EXPORT_FORMATS:
            raise ValidationError(f"Unknown export format: {fmt}")
        return normalized

    def _snapshot(self, handle: ConnectionHandle, table: str, with_create: bool) -> TableSnapshot:
        result = handle.query(f"SELECT * FROM {handle.quote_identifier(table)}")
        columns = result.columns or self.introspector.column_names(handle, table)
        create_sql = self.introspector.create_statement(handle, table) if with_create else None
        return TableSnapshot(name=table, columns=columns, rows=result.rows, create_sql=create_sql)

    def _context(self, handle: ConnectionHandle, now: datetime) -> ExportContext:
        return ExportContext(
            database=handle.current_database or "",
            exported_at=now.strftime(EXPORT_HEADER_TIME_FORMAT),
            dialect=handle.dialect,
            server=handle.descriptor.host,
        )

    @staticmethod
    def _filename(parts: List[str], now: datetime, fmt: str) -> str:
        names = [_FILENAME_UNSAFE.sub("_", part) for part in parts if part]
        names.append(now.strftime(EXPORT_TIMESTAMP_FORMAT))
        return "_".join(names) + EXPORT_EXTENSIONS[fmt]

    @staticmethod
    def _result(text: str, filename: str, fmt: str, row_count: int) -> ExportResult:
        return ExportResult(
            content=text.encode(_ENCODINGS.get(fmt, "utf-8")),
            filename=filename,
            mime_type=EXPORT_MIME_TYPES[fmt],
            row_count=row_count,
        )
