"""
Bulk & Search - Apply one action to many targets, search many tables.

Bulk actions are best-effort batches: each target is processed on its own,
failures are collected and nothing already done is rolled back.
"""
import re
from typing import Iterable, List, Optional

from .connection import ConnectionHandle
from .ddl import DDLOperator
from .introspector import SchemaIntrospector
from .models import BulkResult, DropDatabase, DropTable, SearchHit, TruncateTable
from ..constants import GLOBAL_SEARCH_ROW_LIMIT, TEXT_TYPE_PATTERN
from ..exceptions import DabiroError, ExecutionError, ValidationError

import logging
logger = logging.getLogger(__name__)


class BulkOperator:
    """
    Drop or truncate many tables, or drop many databases.

    Usage:
        bulk = BulkOperator(ddl_operator)
        result = bulk.apply(handle, "drop", ["a", "b", "c"], database="shop")
        print(result.succeeded_count, result.failures)
    """

    ACTIONS = ("drop", "truncate")

    def __init__(self, ddl: Optional[DDLOperator] = None):
        self.ddl = ddl or DDLOperator()

    def apply(
        self,
        handle: ConnectionHandle,
        action: str,
        targets: Iterable[str],
        database: Optional[str] = None
    ) -> BulkResult:
        """
        Apply ``action`` to every target.

        Args:
            handle: Open connection
            action: "drop" or "truncate"
            targets: Table names, or database names for a drop without ``database``
                (except on SQLite, where targets are always tables)
            database: Database holding the target tables

        Returns:
            BulkResult with the success count and one failure entry per failed target

        Raises:
            ValidationError: Unknown action
        """
        action = (action or "").strip().lower()
        if action not in self.ACTIONS:
            raise ValidationError(f"Unknown bulk action: {action}")

        # SQLite has no databases to drop: targets are always its tables
        drop_databases = action == "drop" and not database and handle.dialect.supports_databases

        if database:
            handle.use_database(database)

        result = BulkResult(action=action)
        for target in targets:
            if drop_databases:
                intent = DropDatabase(target)
            elif action == "drop":
                intent = DropTable(target)
            else:
                intent = TruncateTable(target)

            try:
                self.ddl.execute(handle, intent)
                result.succeeded_count += 1
            except DabiroError as e:
                logger.warning(f"Bulk {action} failed for {target}: {e}")
                result.failures[target] = str(e)

        logger.info(
            f"Bulk {action}: {result.succeeded_count} succeeded, {result.failed_count} failed"
        )
        return result


class GlobalSearch:
    """
    Search a term in every text-like column of every table of a database.

    Usage:
        search = GlobalSearch(introspector)
        for hit in search.search(handle, "alice", database="shop"):
            print(hit.table, hit.count)
    """

    def __init__(self, introspector: Optional[SchemaIntrospector] = None,
                 row_limit: int = GLOBAL_SEARCH_ROW_LIMIT):
        self.introspector = introspector or SchemaIntrospector()
        self.row_limit = row_limit
        self._text_type = re.compile(TEXT_TYPE_PATTERN, re.IGNORECASE)

    def search(self, handle: ConnectionHandle, term: str,
               database: Optional[str] = None) -> List[SearchHit]:
        """
        Run the search.

        Tables without text-like columns and tables whose query fails are
        skipped. Only tables with at least one matching row are returned.
        """
        if term is None or str(term) == "":
            raise ValidationError("A search term is required")

        dialect = handle.dialect
        pattern = dialect.quote(f"%{term}%")
        hits = []

        for table in self.introspector.list_tables(handle, database):
            columns = [
                c.name for c in self.introspector.list_columns(handle, table)
                if self._text_type.search(c.type or "")
            ]
            if not columns:
                continue

            conditions = " OR ".join(
                f"{dialect.text_expression(dialect.quote_identifier(c))} LIKE {pattern}"
                for c in columns
            )
            sql = (
                f"SELECT * FROM {dialect.quote_identifier(table)} "
                f"WHERE {conditions} LIMIT {int(self.row_limit)}"
            )
            try:
                result = handle.query(sql)
            except ExecutionError as e:
                logger.warning(f"Skipping {table} in global search: {e}")
                continue

            if result.rows:
                hits.append(SearchHit(table=table, columns=result.columns, rows=result.rows))

        logger.debug(f"Global search for {term!r}: {len(hits)} table(s) matched")
        return hits
