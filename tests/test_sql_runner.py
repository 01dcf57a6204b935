"""
Tests for SqlRunner and the SQL splitter.
"""
import pytest

from dabiro.database.sql_runner import SqlRunner
from dabiro.exceptions import ExecutionError
from dabiro.utils.sql_splitter import is_select_statement, split_sql_statements


class TestSplitter:
    """Test statement splitting and classification."""

    def test_splits_on_semicolons(self):
        statements = split_sql_statements("SELECT 1;\nSELECT 2;")
        assert [s.text for s in statements] == ["SELECT 1;", "SELECT 2;"]

    def test_semicolon_inside_string(self):
        statements = split_sql_statements("INSERT INTO t VALUES ('a;b');\nSELECT 1;")
        assert len(statements) == 2
        assert statements[0].text == "INSERT INTO t VALUES ('a;b');"

    def test_line_numbers(self):
        sql = "SELECT 1;\n\n\nSELECT\n  2;\nSELECT 3;"
        statements = split_sql_statements(sql)
        assert [(s.line_start, s.line_end) for s in statements] == [(1, 1), (4, 5), (6, 6)]

    def test_comment_only_fragment_skipped(self):
        statements = split_sql_statements("SELECT 1;\n-- trailing note")
        assert len(statements) == 1

    def test_empty_text(self):
        assert split_sql_statements("   \n ") == []

    @pytest.mark.parametrize("sql,expected", [
        ("SELECT 1", True),
        ("  with x as (select 1) select * from x", True),
        ("SHOW TABLES", True),
        ("PRAGMA table_info(users)", True),
        ("(SELECT 1)", True),
        ("UPDATE t SET x = 1", False),
        ("USE shop", False),
        ("-- just a comment", False),
    ])
    def test_is_select_statement(self, sql, expected):
        assert is_select_statement(sql) is expected


class TestSqlRunner:
    """Test batch execution on SQLite."""

    def test_mixed_batch(self, handle):
        results = SqlRunner().run(
            handle,
            "UPDATE users SET note = 'seen' WHERE id < 3;\n"
            "SELECT id, note FROM users ORDER BY id;"
        )
        assert len(results) == 2

        update, select = results
        assert not update.is_select
        assert update.affected_rows == 2
        assert select.is_select
        assert select.columns == ["id", "note"]
        assert [row["note"] for row in select.rows] == ["seen", "seen", "likes alice"]
        assert select.elapsed_ms >= 0

    def test_failure_reports_completed_statements(self, handle):
        with pytest.raises(ExecutionError) as exc_info:
            SqlRunner().run(
                handle,
                "DELETE FROM logs WHERE id = 1;\n"
                "SELECT * FROM nope;\n"
                "DELETE FROM logs;"
            )
        error = exc_info.value
        assert str(error) == "no such table: nope"
        assert error.step == "statement 2 (line 2)"
        assert [r.sql for r in error.completed_steps] == ["DELETE FROM logs WHERE id = 1;"]
        # Earlier statements stay committed and later ones never run
        assert handle.scalar("SELECT COUNT(*) FROM logs") == 1

    def test_ddl_invalidates_column_cache(self, handle, introspector):
        introspector.list_columns(handle, "logs")
        SqlRunner(introspector).run(handle, "ALTER TABLE logs ADD COLUMN tag TEXT;")
        assert introspector.column_names(handle, "logs")[-1] == "tag"

    def test_failed_batch_still_invalidates_column_cache(self, handle, introspector):
        introspector.list_columns(handle, "logs")
        with pytest.raises(ExecutionError):
            SqlRunner(introspector).run(
                handle,
                "ALTER TABLE logs ADD COLUMN tag TEXT;\n"
                "SELECT * FROM nope;"
            )
        assert introspector.column_names(handle, "logs")[-1] == "tag"
