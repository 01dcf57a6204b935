"""
SQL Runner - Execute user-supplied SQL text statement by statement.
"""
import time
from typing import List, Optional

from .connection import ConnectionHandle
from .introspector import SchemaIntrospector
from .models import StatementResult
from ..exceptions import ExecutionError
from ..utils.sql_splitter import split_sql_statements

import logging
logger = logging.getLogger(__name__)


class SqlRunner:
    """
    Runs a batch of statements in order on one handle.

    The first failing statement stops the batch; the results of the
    statements before it are attached to the raised ExecutionError as
    ``completed_steps``.

    Usage:
        runner = SqlRunner()
        for result in runner.run(handle, "UPDATE t SET x = 1; SELECT * FROM t"):
            print(result.sql, result.affected_rows, result.rows)
    """

    def __init__(self, introspector: Optional[SchemaIntrospector] = None):
        self.introspector = introspector

    def run(self, handle: ConnectionHandle, sql_text: str) -> List[StatementResult]:
        statements = split_sql_statements(sql_text)
        results: List[StatementResult] = []

        try:
            for statement in statements:
                start = time.perf_counter()
                try:
                    query_result = handle.query(statement.text)
                except ExecutionError as e:
                    logger.error(f"Statement at line {statement.line_start} failed: {e}")
                    raise ExecutionError(
                        str(e),
                        sql=statement.text,
                        step=f"statement {len(results) + 1} (line {statement.line_start})",
                        completed_steps=results,
                    ) from e
                elapsed_ms = (time.perf_counter() - start) * 1000

                results.append(StatementResult(
                    sql=statement.text,
                    is_select=statement.is_select or query_result.has_result_set,
                    columns=query_result.columns,
                    rows=query_result.rows,
                    affected_rows=query_result.rowcount,
                    elapsed_ms=round(elapsed_ms, 2),
                ))
        finally:
            # Committed statements may have changed any table's structure
            if self.introspector is not None and results:
                self.introspector.invalidate(handle)

        logger.debug(f"Ran {len(results)} statement(s)")
        return results
