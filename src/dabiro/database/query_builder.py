"""
Query Builder - Browse, insert, update and delete rows.

Values are embedded as literals through the dialect's quote(); identifiers
always go through quote_identifier(). Filter and sort columns are checked
against the table's live column list and unknown references are dropped.
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .connection import ConnectionHandle
from .dialects import DatabaseDialect
from .introspector import SchemaIntrospector
from .models import FilterOperator, FilterPredicate, Page, QueryRequest
from ..constants import ORIGINAL_VALUE_PREFIX
from ..exceptions import ValidationError

import logging
logger = logging.getLogger(__name__)


class QueryBuilder:
    """
    Translates browse requests and records into SQL and runs them.

    Usage:
        builder = QueryBuilder(introspector)
        page = builder.fetch_page(handle, QueryRequest("users", limit=25))
        builder.insert(handle, "users", {"name": "alice"})
        builder.update_record(handle, "users", {"name": "bob", "old_name": "alice"})
    """

    def __init__(self, introspector: Optional[SchemaIntrospector] = None):
        self.introspector = introspector or SchemaIntrospector()

    # ==================== Read Path ====================

    def fetch_page(self, handle: ConnectionHandle, request: QueryRequest) -> Page:
        """
        Run a browse request and its COUNT(*) companion.

        Raises:
            ExecutionError: The engine rejected the query (e.g. unknown table)
        """
        known = self.introspector.column_names(handle, request.table, use_cache=False)
        where, active = self._where_clause(handle.dialect, request, known)

        select_sql = self._select_sql(handle.dialect, request, known, where)
        count_sql = self._count_sql(handle.dialect, request, where)
        logger.debug(f"Browse query: {select_sql}")

        result = handle.query(select_sql)
        total = int(handle.scalar(count_sql) or 0)

        return Page(
            rows=result.rows,
            columns=result.columns or known,
            total=total,
            limit=request.limit,
            offset=request.offset,
            filter_active=active or self._sort_column(request, known) is not None,
            sql=select_sql,
        )

    def build_select(self, handle: ConnectionHandle, request: QueryRequest,
                     known_columns: Optional[Sequence[str]] = None) -> str:
        """SELECT statement for a request; looks up columns when not given."""
        known = self._known(handle, request.table, known_columns)
        where, _ = self._where_clause(handle.dialect, request, known)
        return self._select_sql(handle.dialect, request, known, where)

    def build_count(self, handle: ConnectionHandle, request: QueryRequest,
                    known_columns: Optional[Sequence[str]] = None) -> str:
        """COUNT(*) statement sharing the request's WHERE clause."""
        known = self._known(handle, request.table, known_columns)
        where, _ = self._where_clause(handle.dialect, request, known)
        return self._count_sql(handle.dialect, request, where)

    def build_where(self, handle: ConnectionHandle, request: QueryRequest,
                    known_columns: Optional[Sequence[str]] = None) -> str:
        """WHERE clause (with leading space) or an empty string."""
        known = self._known(handle, request.table, known_columns)
        return self._where_clause(handle.dialect, request, known)[0]

    def _known(self, handle: ConnectionHandle, table: str,
               known_columns: Optional[Sequence[str]]) -> List[str]:
        if known_columns is not None:
            return list(known_columns)
        return self.introspector.column_names(handle, table, use_cache=False)

    def _select_sql(self, dialect: DatabaseDialect, request: QueryRequest,
                    known: Sequence[str], where: str) -> str:
        sql = f"SELECT * FROM {dialect.quote_identifier(request.table)}{where}"
        sort_column = self._sort_column(request, known)
        if sort_column is not None:
            sql += f" ORDER BY {dialect.quote_identifier(sort_column)} {request.sort_direction}"
        return f"{sql} LIMIT {request.limit} OFFSET {request.offset}"

    def _count_sql(self, dialect: DatabaseDialect, request: QueryRequest, where: str) -> str:
        return f"SELECT COUNT(*) AS total FROM {dialect.quote_identifier(request.table)}{where}"

    @staticmethod
    def _sort_column(request: QueryRequest, known: Sequence[str]) -> Optional[str]:
        if request.sort_column and request.sort_column in known:
            return request.sort_column
        if request.sort_column:
            logger.debug(f"Ignoring sort on unknown column {request.sort_column}")
        return None

    def _where_clause(self, dialect: DatabaseDialect, request: QueryRequest,
                      known: Sequence[str]) -> Tuple[str, bool]:
        """
        Build the WHERE clause.

        Returns:
            (clause, filter_active); the clause is empty when no filter applies
        """
        conditions = []

        for predicate in request.filters:
            fragment = self._predicate_sql(dialect, predicate, known)
            if fragment:
                conditions.append(fragment)

        for column, value in request.column_filters.items():
            fragment = self._predicate_sql(
                dialect, FilterPredicate(column, FilterOperator.CONTAINS, value), known
            )
            if fragment:
                conditions.append(fragment)

        if not conditions:
            return "", False
        return " WHERE " + " AND ".join(conditions), True

    def _predicate_sql(self, dialect: DatabaseDialect, predicate: FilterPredicate,
                       known: Sequence[str]) -> Optional[str]:
        """SQL fragment of one predicate, or None when it does not apply."""
        if predicate.column not in known:
            logger.debug(f"Ignoring filter on unknown column {predicate.column}")
            return None
        if predicate.value is None or predicate.value == "":
            return None

        column = dialect.quote_identifier(predicate.column)
        text = str(predicate.value)
        operator = predicate.operator

        if operator is FilterOperator.EQUALS:
            return f"{column} = {dialect.quote(predicate.value)}"
        if operator is FilterOperator.NOT_EQUALS:
            return f"{column} != {dialect.quote(predicate.value)}"

        expression = dialect.text_expression(column)
        if operator is FilterOperator.REGEX:
            return f"{expression} {dialect.regex_operator} {dialect.quote(text)}"
        if operator is FilterOperator.STARTS_WITH:
            pattern = f"{text}%"
        elif operator is FilterOperator.ENDS_WITH:
            pattern = f"%{text}"
        else:
            pattern = f"%{text}%"
        return f"{expression} LIKE {dialect.quote(pattern)}"

    # ==================== Write Path ====================

    @staticmethod
    def split_record(record: Mapping[str, Any],
                     prefix: str = ORIGINAL_VALUE_PREFIX) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """
        Partition an edit record into (new values, original row image).

        Keys carrying ``prefix`` hold the row's previous values; the prefix
        is stripped from them.
        """
        new_values, original = {}, {}
        for key, value in record.items():
            if key.startswith(prefix):
                original[key[len(prefix):]] = value
            else:
                new_values[key] = value
        return new_values, original

    def build_insert(self, handle: ConnectionHandle, table: str, record: Mapping[str, Any]) -> str:
        """INSERT statement from a record's non-prefixed fields."""
        values, _ = self.split_record(record)
        if not values:
            raise ValidationError("Nothing to insert: the record is empty")
        dialect = handle.dialect
        columns = ", ".join(dialect.quote_identifier(c) for c in values)
        literals = ", ".join(dialect.quote(v) for v in values.values())
        return f"INSERT INTO {dialect.quote_identifier(table)} ({columns}) VALUES ({literals})"

    def insert(self, handle: ConnectionHandle, table: str, record: Mapping[str, Any]) -> int:
        sql = self.build_insert(handle, table, record)
        logger.debug(f"Insert: {sql}")
        return handle.execute(sql)

    def build_update(self, handle: ConnectionHandle, table: str,
                     new_values: Mapping[str, Any], original: Mapping[str, Any]) -> str:
        """
        UPDATE statement locating the row by its full previous image.

        Every row equal to the image is updated, duplicates included.
        """
        if not new_values:
            raise ValidationError("Nothing to update: no new values given")
        if not original:
            raise ValidationError("Cannot update without the original row values")
        dialect = handle.dialect
        assignments = ", ".join(
            f"{dialect.quote_identifier(c)} = {dialect.quote(v)}" for c, v in new_values.items()
        )
        return (
            f"UPDATE {dialect.quote_identifier(table)} SET {assignments}"
            f" WHERE {self._row_image_condition(dialect, original)}"
        )

    def update(self, handle: ConnectionHandle, table: str,
               new_values: Mapping[str, Any], original: Mapping[str, Any]) -> int:
        sql = self.build_update(handle, table, new_values, original)
        logger.debug(f"Update: {sql}")
        return handle.execute(sql)

    def update_record(self, handle: ConnectionHandle, table: str, record: Mapping[str, Any]) -> int:
        """Update using a record holding both new and ``old_``-prefixed values."""
        new_values, original = self.split_record(record)
        return self.update(handle, table, new_values, original)

    def build_delete(self, handle: ConnectionHandle, table: str, row_image: Mapping[str, Any]) -> str:
        """DELETE statement matching every column/value pair of ``row_image``."""
        if not row_image:
            raise ValidationError("Cannot delete without a row image")
        dialect = handle.dialect
        return (
            f"DELETE FROM {dialect.quote_identifier(table)}"
            f" WHERE {self._row_image_condition(dialect, row_image)}"
        )

    def delete(self, handle: ConnectionHandle, table: str, row_image: Mapping[str, Any]) -> int:
        sql = self.build_delete(handle, table, row_image)
        logger.debug(f"Delete: {sql}")
        return handle.execute(sql)

    @staticmethod
    def _row_image_condition(dialect: DatabaseDialect, image: Mapping[str, Any]) -> str:
        conditions = []
        for column, value in image.items():
            quoted = dialect.quote_identifier(column)
            if value is None:
                conditions.append(f"{quoted} IS NULL")
            else:
                conditions.append(f"{quoted} = {dialect.quote(value)}")
        return " AND ".join(conditions)
