"""
Tests for ExportSerializer and the format renderers.
"""
import csv
import io
import json
import sqlite3
import xml.etree.ElementTree as ET
from datetime import date, datetime
from decimal import Decimal

import pytest

from dabiro.database.dialects import SQLiteDialect
from dabiro.export import ExportContext, ExportSerializer, TableSnapshot
from dabiro.export.renderers import json_default, render_sql_inserts, to_text, xml_name
from dabiro.exceptions import ValidationError

EXPORT_TIME = datetime(2024, 5, 6, 7, 8, 9)


@pytest.fixture
def serializer(introspector):
    return ExportSerializer(introspector, clock=lambda: EXPORT_TIME)


class TestTableExport:
    """Test single-table exports on SQLite."""

    def test_json(self, handle, serializer):
        result = serializer.export_table(handle, "users", "json")
        assert result.filename == "main_users_2024-05-06_07-08-09.json"
        assert result.mime_type == "application/json"
        assert result.row_count == 3

        document = json.loads(result.content.decode("utf-8"))
        assert document["database"] == "main"
        assert document["table"] == "users"
        assert document["exported_at"] == "2024-05-06 07:08:09"
        assert document["total_records"] == 3
        assert document["data"][0] == {
            "id": 1, "name": "alice", "email": "alice@example.com", "note": None,
        }

    def test_json_keeps_unicode(self, handle, serializer):
        handle.execute("UPDATE users SET name = 'Zoë ✓' WHERE id = 1")
        text = serializer.export_table(handle, "users", "json").content.decode("utf-8")
        assert "Zoë ✓" in text

    def test_csv(self, handle, serializer):
        result = serializer.export_table(handle, "users", "CSV")
        assert result.content.startswith(b"\xef\xbb\xbf")
        assert result.filename.endswith(".csv")

        rows = list(csv.reader(io.StringIO(result.content.decode("utf-8-sig"))))
        assert rows[0] == ["id", "name", "email", "note"]
        assert rows[1] == ["1", "alice", "alice@example.com", ""]
        assert rows[2][3] == "O'Brien"
        assert len(rows) == 4

    def test_xml(self, handle, serializer):
        result = serializer.export_table(handle, "users", "xml")
        assert result.content.startswith(b'<?xml version="1.0" encoding="UTF-8"?>')

        root = ET.fromstring(result.content)
        assert root.findtext("table") == "users"
        records = root.findall("records/record")
        assert len(records) == 3
        assert records[0].findtext("name") == "alice"
        note = records[0].find("note")
        assert note is not None and note.text is None

    def test_sql_script_recreates_table(self, handle, serializer, tmp_path):
        result = serializer.export_table(handle, "users", "sql")
        script = result.content.decode("utf-8")
        assert script.startswith("-- Export of table `users`")
        assert "-- Records: 3" in script
        assert "CREATE TABLE users" in script
        assert script.count("INSERT INTO `users`") == 3

        target = sqlite3.connect(tmp_path / "restored.db")
        try:
            target.executescript(script)
            rows = target.execute("SELECT id, name, note FROM users ORDER BY id").fetchall()
        finally:
            target.close()
        assert rows == [(1, "alice", None), (2, "bob", "O'Brien"), (3, "carol", "likes alice")]

    def test_empty_table_has_header_only(self, handle, serializer):
        handle.execute("DELETE FROM logs")
        rows = list(csv.reader(io.StringIO(
            serializer.export_table(handle, "logs", "csv").content.decode("utf-8-sig")
        )))
        assert rows == [["id", "level", "created"]]

    def test_unknown_format(self, handle, serializer):
        with pytest.raises(ValidationError):
            serializer.export_table(handle, "users", "yaml")

    def test_export_rows(self, handle, serializer):
        rows = [{"id": 2, "name": "bob"}]
        result = serializer.export_rows(handle, "users", ["id", "name"], rows, "sql")
        text = result.content.decode("utf-8")
        assert "INSERT INTO `users` (`id`, `name`) VALUES (2, 'bob');" in text
        assert "CREATE TABLE" not in text
        assert result.row_count == 1


class TestDatabaseExport:
    """Test whole-database exports."""

    def test_json(self, handle, serializer):
        result = serializer.export_database(handle, "main", "json")
        assert result.filename == "main_2024-05-06_07-08-09.json"
        assert result.row_count == 5

        document = json.loads(result.content)
        assert document["type"] == "sqlite"
        assert set(document["tables"]) == {"logs", "users"}
        assert len(document["tables"]["logs"]) == 2

    def test_csv_sections(self, handle, serializer):
        text = serializer.export_database(handle, "main", "csv").content.decode("utf-8-sig")
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == ["# logs"]
        assert rows[1] == ["id", "level", "created"]
        assert [] in rows
        assert ["# users"] in rows

    def test_xml_tables(self, handle, serializer):
        root = ET.fromstring(serializer.export_database(handle, "main", "xml").content)
        tables = root.findall("tables/table")
        assert [t.get("name") for t in tables] == ["logs", "users"]
        assert len(tables[1].findall("records/record")) == 3

    def test_sql_has_every_table(self, handle, serializer):
        text = serializer.export_database(handle, "main", "sql").content.decode("utf-8")
        assert "-- Type: sqlite" in text
        assert "CREATE TABLE logs" in text
        assert "CREATE TABLE users" in text


class TestQueryTextExport:
    """Test exporting ad-hoc SQL text."""

    def test_header_and_body(self, serializer):
        result = serializer.export_query_text("SELECT 1;\n", database="shop")
        assert result.filename == "query_2024-05-06_07-08-09.sql"
        assert result.content.decode("utf-8") == (
            "-- SQL query exported from Dabiro\n"
            "-- Date: 2024-05-06 07:08:09\n"
            "-- Database: shop\n"
            "\n"
            "SELECT 1;\n"
        )

    def test_empty_text_rejected(self, serializer):
        with pytest.raises(ValidationError):
            serializer.export_query_text("   ")


class TestRenderHelpers:
    """Test value conversion helpers."""

    def test_xml_name(self):
        assert xml_name("name") == "name"
        assert xml_name("first name") == "first_name"
        assert xml_name("1st") == "_1st"
        assert xml_name("xmlData") == "_xmlData"

    def test_json_default(self):
        assert json_default(date(2024, 1, 2)) == "2024-01-02"
        assert json_default(Decimal("1.50")) == "1.50"
        assert json_default(b"\x01\x02") == "0102"
        with pytest.raises(TypeError):
            json_default(object())

    def test_to_text(self):
        assert to_text(None) == ""
        assert to_text(True) == "1"
        assert to_text(b"\xff") == "ff"
        assert to_text(2.5) == "2.5"

    def test_inserts_quote_every_value(self):
        table = TableSnapshot("t", ["a", "b"], [{"a": None, "b": "it's"}])
        assert render_sql_inserts(SQLiteDialect(), table) == [
            "INSERT INTO `t` (`a`, `b`) VALUES (NULL, 'it''s');"
        ]

    def test_context_fields(self):
        context = ExportContext("db", "2024-05-06 07:08:09", SQLiteDialect(), server="host")
        assert context.dialect.name == "sqlite"
