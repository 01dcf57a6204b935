"""
Tests for QueryBuilder: browsing, filtering, pagination and row edits.
"""
import pytest

from dabiro.database.query_builder import QueryBuilder
from dabiro.database.models import FilterOperator, FilterPredicate, Page, QueryRequest
from dabiro.exceptions import ExecutionError, ValidationError


@pytest.fixture
def builder(introspector):
    return QueryBuilder(introspector)


def names(page):
    return [row["name"] for row in page.rows]


class TestFiltering:
    """Test filter operators against SQLite."""

    @pytest.mark.parametrize("operator,value,expected", [
        ("contains", "li", ["alice", "carol"]),
        ("like", "o", ["bob", "carol"]),
        ("equals", "bob", ["bob"]),
        ("=", "bob", ["bob"]),
        ("!=", "bob", ["alice", "carol"]),
        ("starts_with", "ca", ["carol"]),
        ("ends_with", "ice", ["alice"]),
        ("regex", "^(a|b)", ["alice", "bob"]),
    ])
    def test_operators(self, handle, builder, operator, value, expected):
        request = QueryRequest(
            "users",
            filters=[FilterPredicate("name", operator, value)],
            sort_column="name",
        )
        page = builder.fetch_page(handle, request)
        assert names(page) == expected
        assert page.total == len(expected)
        assert page.filter_active

    def test_unknown_filter_column_is_ignored(self, handle, builder):
        request = QueryRequest("users", filters=[FilterPredicate("nope", "equals", "x")])
        page = builder.fetch_page(handle, request)
        assert page.total == 3
        assert not page.filter_active
        assert "nope" not in page.sql

    def test_empty_value_is_ignored(self, handle, builder):
        request = QueryRequest("users", filters=[FilterPredicate("name", "equals", "")])
        assert builder.fetch_page(handle, request).total == 3

    def test_quote_in_filter_value(self, handle, builder):
        request = QueryRequest("users", filters=[FilterPredicate("note", "equals", "O'Brien")])
        assert names(builder.fetch_page(handle, request)) == ["bob"]

    def test_column_filters_act_as_contains(self, handle, builder):
        request = QueryRequest("users", column_filters={"email": "example", "nope": "x", "note": ""})
        page = builder.fetch_page(handle, request)
        assert page.total == 2
        assert sorted(names(page)) == ["alice", "bob"]

    def test_unknown_operator_falls_back_to_contains(self):
        assert FilterPredicate("name", "whatever", "x").operator is FilterOperator.CONTAINS


class TestSorting:
    """Test ORDER BY handling."""

    def test_sort_descending(self, handle, builder):
        page = builder.fetch_page(handle, QueryRequest("users", sort_column="name", sort_direction="desc"))
        assert names(page) == ["carol", "bob", "alice"]
        assert "ORDER BY `name` DESC" in page.sql
        assert page.filter_active

    def test_unknown_sort_column_is_ignored(self, handle, builder):
        page = builder.fetch_page(handle, QueryRequest("users", sort_column="nope"))
        assert "ORDER BY" not in page.sql
        assert not page.filter_active

    def test_invalid_direction_defaults_to_asc(self):
        assert QueryRequest("users", sort_direction="sideways").sort_direction == "ASC"


class TestPagination:
    """Test LIMIT/OFFSET and page arithmetic."""

    def test_page_window(self, handle, builder):
        handle.execute("CREATE TABLE numbers (n INTEGER)")
        values = ", ".join(f"({i})" for i in range(237))
        handle.execute(f"INSERT INTO numbers (n) VALUES {values}")

        page = builder.fetch_page(handle, QueryRequest("numbers", sort_column="n", limit=50, offset=100))
        assert [row["n"] for row in page.rows] == list(range(100, 150))
        assert page.total == 237
        assert page.current_page == 3
        assert page.total_pages == 5
        assert page.has_previous and page.has_next
        assert page.sql.endswith("LIMIT 50 OFFSET 100")

    def test_last_page(self):
        page = Page(rows=[], columns=[], total=237, limit=50, offset=200)
        assert page.current_page == 5
        assert not page.has_next

    def test_empty_table_has_no_pages(self):
        page = Page(rows=[], columns=[], total=0, limit=50, offset=0)
        assert page.total_pages == 0
        assert not page.has_previous

    def test_columns_reported_for_empty_result(self, handle, builder):
        request = QueryRequest("users", filters=[FilterPredicate("name", "equals", "zed")])
        page = builder.fetch_page(handle, request)
        assert page.rows == []
        assert page.columns == ["id", "name", "email", "note"]

    @pytest.mark.parametrize("kwargs", [
        {"table": ""},
        {"table": "users", "limit": 0},
        {"table": "users", "offset": -1},
        {"table": "users", "limit": "ten"},
    ])
    def test_request_validation(self, kwargs):
        with pytest.raises(ValidationError):
            QueryRequest(**kwargs)

    def test_missing_table_raises(self, handle, builder):
        with pytest.raises(ExecutionError) as exc_info:
            builder.fetch_page(handle, QueryRequest("nope"))
        assert "no such table" in str(exc_info.value)


class TestRowEdits:
    """Test insert, update and delete by row image."""

    def test_insert(self, handle, builder):
        assert builder.insert(handle, "users", {"id": 4, "name": "dave", "email": None}) == 1
        row = handle.query("SELECT * FROM users WHERE id = 4").first()
        assert row == {"id": 4, "name": "dave", "email": None, "note": None}

    def test_insert_skips_original_values(self, handle, builder):
        sql = builder.build_insert(handle, "users", {"name": "eve", "old_name": "x"})
        assert sql == "INSERT INTO `users` (`name`) VALUES ('eve')"

    def test_insert_requires_values(self, handle, builder):
        with pytest.raises(ValidationError):
            builder.insert(handle, "users", {"old_name": "x"})

    def test_update_record_matches_null_with_is_null(self, handle, builder):
        record = {
            "note": "first",
            "old_id": 1, "old_name": "alice", "old_email": "alice@example.com", "old_note": None,
        }
        assert builder.update_record(handle, "users", record) == 1
        assert handle.scalar("SELECT note FROM users WHERE id = 1") == "first"

    def test_update_sql_shape(self, handle, builder):
        sql = builder.build_update(handle, "users", {"name": "z"}, {"id": 3, "email": None})
        assert sql == "UPDATE `users` SET `name` = 'z' WHERE `id` = 3 AND `email` IS NULL"

    def test_update_requires_both_parts(self, handle, builder):
        with pytest.raises(ValidationError):
            builder.update(handle, "users", {}, {"id": 1})
        with pytest.raises(ValidationError):
            builder.update(handle, "users", {"name": "x"}, {})

    def test_split_record(self):
        new, old = QueryBuilder.split_record({"a": 1, "old_a": 2, "b": None})
        assert new == {"a": 1, "b": None}
        assert old == {"a": 2}

    def test_delete(self, handle, builder):
        image = {"id": 2, "name": "bob", "email": "bob@example.com", "note": "O'Brien"}
        assert builder.delete(handle, "users", image) == 1
        assert handle.scalar("SELECT COUNT(*) FROM users") == 2

    def test_delete_hits_every_duplicate(self, handle, builder):
        handle.execute("CREATE TABLE dup (v TEXT)")
        handle.execute("INSERT INTO dup (v) VALUES ('x'), ('x'), ('y')")
        assert builder.delete(handle, "dup", {"v": "x"}) == 2

    def test_insert_into_untyped_columns_keeps_numbers(self, handle, builder):
        handle.execute("CREATE TABLE loose (a, b)")
        builder.insert(handle, "loose", {"a": 5, "b": "x"})
        assert handle.query("SELECT a, b FROM loose").rows == [{"a": 5, "b": "x"}]

    def test_update_and_delete_untyped_row_by_image(self, handle, builder):
        handle.execute("CREATE TABLE loose (a, b)")
        handle.execute("INSERT INTO loose (a, b) VALUES (5, 'x'), (7, 'x')")
        image = handle.query("SELECT a, b FROM loose WHERE a = 5").first()
        assert image == {"a": 5, "b": "x"}

        assert builder.update(handle, "loose", {"b": "y"}, image) == 1
        assert builder.delete(handle, "loose", {"a": 5, "b": "y"}) == 1
        assert handle.query("SELECT a, b FROM loose").rows == [{"a": 7, "b": "x"}]

    def test_delete_requires_image(self, handle, builder):
        with pytest.raises(ValidationError):
            builder.delete(handle, "users", {})


class TestServerSQL:
    """Test generated SQL for MySQL and PostgreSQL."""

    def test_mysql_regex_and_limit(self, mysql_handle, builder):
        request = QueryRequest(
            "users", filters=[FilterPredicate("name", "regex", "^a")], limit=10, offset=20
        )
        sql = builder.build_select(mysql_handle, request, known_columns=["id", "name"])
        assert sql == "SELECT * FROM `users` WHERE `name` REGEXP '^a' LIMIT 10 OFFSET 20"

    def test_postgres_regex_casts_to_text(self, pg_handle, builder):
        request = QueryRequest("users", filters=[FilterPredicate("id", "regex", "^1")])
        where = builder.build_where(pg_handle, request, known_columns=["id"])
        assert where == " WHERE CAST(\"id\" AS TEXT) ~ '^1'"

    def test_postgres_count(self, pg_handle, builder):
        request = QueryRequest("users", filters=[FilterPredicate("name", "starts_with", "a")])
        sql = builder.build_count(pg_handle, request, known_columns=["name"])
        assert sql == 'SELECT COUNT(*) AS total FROM "users" WHERE CAST("name" AS TEXT) LIKE \'a%\''

    def test_fetch_page_reads_columns_fresh(self, mysql_handle, mysql_conn, builder):
        mysql_conn.responses["SHOW COLUMNS"] = (
            ["Field", "Type", "Null", "Key", "Default", "Extra"],
            [("id", "int", "NO", "PRI", None, "")],
        )
        mysql_conn.responses["COUNT(*)"] = (["total"], [(0,)])
        builder.fetch_page(mysql_handle, QueryRequest("users"))
        builder.fetch_page(mysql_handle, QueryRequest("users"))
        assert sum("SHOW COLUMNS" in sql for sql in mysql_conn.statements) == 2
