"""
Tests for the plain data models.
"""
import pytest

from dabiro.database.models import (
    ColumnDefinition,
    DatabaseStats,
    FilterOperator,
    SchemaNode,
    SchemaNodeType,
    format_size,
)
from dabiro.exceptions import ValidationError


class TestFormatSize:

    def test_kilobytes(self):
        assert format_size(2048) == "2.0 KB"
        assert format_size(1536) == "1.5 KB"
        assert format_size(1000) == "0.98 KB"

    def test_unknown(self):
        assert format_size(None) == "N/A"


class TestColumnDefinition:
    """Test column validation and default handling."""

    def test_null_default_detection(self):
        assert ColumnDefinition("a", "INT", default="null").default_is_null
        assert not ColumnDefinition("a", "INT", default="0").default_is_null
        assert not ColumnDefinition("a", "INT", default="").has_default

    @pytest.mark.parametrize("col_type", ["", "1INT", "INT)", "TEXT --"])
    def test_invalid_types(self, col_type):
        with pytest.raises(ValidationError):
            ColumnDefinition("a", col_type).validate()


class TestMisc:

    def test_operator_aliases(self):
        assert FilterOperator.parse("like_start") is FilterOperator.STARTS_WITH
        assert FilterOperator.parse("<>") is FilterOperator.NOT_EQUALS
        assert FilterOperator.parse(FilterOperator.REGEX) is FilterOperator.REGEX

    def test_database_stats_display(self):
        assert DatabaseStats(size_bytes=1024, table_count=0).as_dict() == {
            "size": "1.0 KB", "tables": 0, "collation": "N/A",
        }

    def test_schema_node_defaults_display_name(self):
        node = SchemaNode(SchemaNodeType.TABLE, "users")
        assert node.display_name == "users"
        node.add_child(SchemaNode(SchemaNodeType.COLUMN, "id"))
        assert node.child_count() == 1
