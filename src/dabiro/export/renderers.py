"""
Export renderers - Turn table snapshots into SQL, CSV, JSON or XML text.

Renderers are pure functions over ``TableSnapshot`` objects; fetching rows
and naming files is the serializer's job.
"""
import csv
import io
import json
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from ..database.dialects import DatabaseDialect

# Characters XML 1.0 cannot carry
_XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")
_XML_NAME_INVALID = re.compile(r"[^A-Za-z0-9_.\-]")


@dataclass
class TableSnapshot:
    """Rows of one table read at export time."""
    name: str
    columns: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    create_sql: Optional[str] = None


@dataclass
class ExportContext:
    """What every export header shows."""
    database: str
    exported_at: str
    dialect: DatabaseDialect
    server: str = ""


def json_default(value: Any) -> Any:
    """JSON conversion for driver types the json module does not know."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_text(value: Any) -> str:
    """Plain-text rendering of a cell; NULL becomes the empty string."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


# ==================== SQL ====================

def render_sql_inserts(dialect: DatabaseDialect, table: TableSnapshot) -> List[str]:
    """One INSERT per row, every value quoted by the dialect."""
    if not table.rows:
        return []
    target = dialect.quote_identifier(table.name)
    column_list = ", ".join(dialect.quote_identifier(c) for c in table.columns)
    statements = []
    for row in table.rows:
        values = ", ".join(dialect.quote(row.get(c)) for c in table.columns)
        statements.append(f"INSERT INTO {target} ({column_list}) VALUES ({values});")
    return statements


def _sql_table_block(dialect: DatabaseDialect, table: TableSnapshot) -> List[str]:
    lines = []
    if table.create_sql:
        lines.extend([table.create_sql.rstrip().rstrip(";") + ";", ""])
    inserts = render_sql_inserts(dialect, table)
    if inserts:
        lines.extend(inserts)
        lines.append("")
    return lines


def render_sql_table(context: ExportContext, table: TableSnapshot) -> str:
    lines = [
        f"-- Export of table {context.dialect.quote_identifier(table.name)}",
        f"-- Database: {context.database}",
        f"-- Date: {context.exported_at}",
        f"-- Records: {len(table.rows)}",
        "",
    ]
    lines.extend(_sql_table_block(context.dialect, table))
    return "\n".join(lines)


def render_sql_database(context: ExportContext, tables: Sequence[TableSnapshot]) -> str:
    lines = [
        f"-- Export of database {context.database}",
        f"-- Server: {context.server}",
        f"-- Type: {context.dialect.name}",
        f"-- Date: {context.exported_at}",
        "",
    ]
    for table in tables:
        lines.extend([
            "-- " + "-" * 60,
            f"-- Table {context.dialect.quote_identifier(table.name)}",
            "-- " + "-" * 60,
            "",
        ])
        lines.extend(_sql_table_block(context.dialect, table))
    return "\n".join(lines)


# ==================== CSV ====================

def _write_csv_rows(writer, table: TableSnapshot) -> None:
    writer.writerow(table.columns)
    for row in table.rows:
        writer.writerow([to_text(row.get(c)) for c in table.columns])


def render_csv_table(context: ExportContext, table: TableSnapshot) -> str:
    buffer = io.StringIO()
    _write_csv_rows(csv.writer(buffer), table)
    return buffer.getvalue()


def render_csv_database(context: ExportContext, tables: Sequence[TableSnapshot]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    for index, table in enumerate(tables):
        if index:
            writer.writerow([])
        writer.writerow([f"# {table.name}"])
        _write_csv_rows(writer, table)
    return buffer.getvalue()


# ==================== JSON ====================

def render_json_table(context: ExportContext, table: TableSnapshot) -> str:
    document = {
        "database": context.database,
        "table": table.name,
        "exported_at": context.exported_at,
        "total_records": len(table.rows),
        "data": table.rows,
    }
    return json.dumps(document, indent=2, ensure_ascii=False, default=json_default)


def render_json_database(context: ExportContext, tables: Sequence[TableSnapshot]) -> str:
    document = {
        "database": context.database,
        "exported_at": context.exported_at,
        "server": context.server,
        "type": context.dialect.name,
        "tables": {table.name: table.rows for table in tables},
    }
    return json.dumps(document, indent=2, ensure_ascii=False, default=json_default)


# ==================== XML ====================

def xml_name(name: str) -> str:
    """Turn a column name into a valid XML element name."""
    cleaned = _XML_NAME_INVALID.sub("_", str(name)) or "_"
    if not (cleaned[0].isalpha() or cleaned[0] == "_") or cleaned.lower().startswith("xml"):
        cleaned = "_" + cleaned
    return cleaned


def _xml_text(value: Any) -> str:
    return _XML_INVALID_CHARS.sub("", to_text(value))


def _add_text(parent: ET.Element, tag: str, value: Any) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if value is not None:
        element.text = _xml_text(value)
    return element


def _add_records(parent: ET.Element, table: TableSnapshot) -> None:
    records = ET.SubElement(parent, "records")
    tags = [(column, xml_name(column)) for column in table.columns]
    for row in table.rows:
        record = ET.SubElement(records, "record")
        for column, tag in tags:
            _add_text(record, tag, row.get(column))


def _serialize(root: ET.Element) -> str:
    ET.indent(root)
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def render_xml_table(context: ExportContext, table: TableSnapshot) -> str:
    root = ET.Element("export")
    _add_text(root, "database", context.database)
    _add_text(root, "table", table.name)
    _add_text(root, "exported_at", context.exported_at)
    _add_records(root, table)
    return _serialize(root)


def render_xml_database(context: ExportContext, tables: Sequence[TableSnapshot]) -> str:
    root = ET.Element("export")
    _add_text(root, "database", context.database)
    _add_text(root, "exported_at", context.exported_at)
    _add_text(root, "server", context.server)
    _add_text(root, "type", context.dialect.name)
    tables_element = ET.SubElement(root, "tables")
    for table in tables:
        table_element = ET.SubElement(tables_element, "table", {"name": table.name})
        _add_records(table_element, table)
    return _serialize(root)


TABLE_RENDERERS = {
    "sql": render_sql_table,
    "csv": render_csv_table,
    "json": render_json_table,
    "xml": render_xml_table,
}

DATABASE_RENDERERS = {
    "sql": render_sql_database,
    "csv": render_csv_database,
    "json": render_json_database,
    "xml": render_xml_database,
}
