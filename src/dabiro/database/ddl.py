"""
DDL Operator - Execute one structural intent per call.

Dialect restrictions are checked before any statement is sent. Copy and
move run several statements without a surrounding transaction; when one
fails the error names the failing step and the steps that already
committed.
"""
from typing import List, Optional, Tuple

from .connection import ConnectionHandle
from .introspector import SchemaIntrospector
from .models import (
    AddColumn,
    CopyTable,
    CreateDatabase,
    CreateTable,
    DDLIntent,
    DDLResult,
    DropDatabase,
    DropTable,
    MoveTable,
    RenameTable,
    StepReport,
    TruncateTable,
)
from ..exceptions import ExecutionError, UnsupportedOperationError, ValidationError

import logging
logger = logging.getLogger(__name__)

# (step name, SQL text)
Step = Tuple[str, str]


class DDLOperator:
    """
    Dispatches DDL intents to dialect statement templates.

    Usage:
        operator = DDLOperator(introspector)
        operator.execute(handle, RenameTable("users", "members"))
        operator.execute(handle, CopyTable("members", "members_bak", copy_data=True))
    """

    def __init__(self, introspector: Optional[SchemaIntrospector] = None):
        self.introspector = introspector or SchemaIntrospector()
        self._handlers = {
            CreateDatabase: self._create_database,
            DropDatabase: self._drop_database,
            CreateTable: self._create_table,
            AddColumn: self._add_column,
            RenameTable: self._rename_table,
            DropTable: self._drop_table,
            TruncateTable: self._truncate_table,
            CopyTable: self._copy_table,
            MoveTable: self._move_table,
        }

    def execute(self, handle: ConnectionHandle, intent: DDLIntent) -> DDLResult:
        """
        Validate and execute one intent.

        Raises:
            ValidationError: The intent is missing required fields
            UnsupportedOperationError: The dialect cannot run the intent
            ExecutionError: The engine rejected a statement
        """
        handler = self._handlers.get(type(intent))
        if handler is None:
            raise ValidationError(f"Unknown DDL intent: {type(intent).__name__}")
        intent.validate()
        return handler(handle, intent)

    # ==================== Databases ====================

    def _create_database(self, handle: ConnectionHandle, intent: CreateDatabase) -> DDLResult:
        self._require_databases(handle, intent)
        return self._run(handle, intent, [("create database", handle.dialect.create_database_sql(intent.name))])

    def _drop_database(self, handle: ConnectionHandle, intent: DropDatabase) -> DDLResult:
        self._require_databases(handle, intent)
        result = self._run(handle, intent, [("drop database", handle.dialect.drop_database_sql(intent.name))])
        self.introspector.invalidate(handle)
        return result

    def _require_databases(self, handle: ConnectionHandle, intent: DDLIntent) -> None:
        if not handle.dialect.supports_databases:
            raise UnsupportedOperationError(intent.operation, handle.dialect.name)

    # ==================== Tables ====================

    def _create_table(self, handle: ConnectionHandle, intent: CreateTable) -> DDLResult:
        sql = handle.dialect.create_table_sql(intent.name, intent.columns)
        if intent.database:
            handle.use_database(intent.database)
        result = self._run(handle, intent, [("create table", sql)])
        self.introspector.invalidate(handle, intent.name)
        return result

    def _add_column(self, handle: ConnectionHandle, intent: AddColumn) -> DDLResult:
        sql = handle.dialect.add_column_sql(intent.table, intent.column)
        result = self._run(handle, intent, [("add column", sql)])
        self.introspector.invalidate(handle, intent.table)
        return result

    def _rename_table(self, handle: ConnectionHandle, intent: RenameTable) -> DDLResult:
        sql = handle.dialect.rename_table_sql(intent.old_name, intent.new_name)
        result = self._run(handle, intent, [("rename table", sql)])
        self.introspector.invalidate(handle, intent.old_name)
        self.introspector.invalidate(handle, intent.new_name)
        return result

    def _drop_table(self, handle: ConnectionHandle, intent: DropTable) -> DDLResult:
        result = self._run(handle, intent, [("drop table", handle.dialect.drop_table_sql(intent.table))])
        self.introspector.invalidate(handle, intent.table)
        return result

    def _truncate_table(self, handle: ConnectionHandle, intent: TruncateTable) -> DDLResult:
        # Without TRUNCATE support this is a plain full-table DELETE
        return self._run(handle, intent, [("truncate table", handle.dialect.truncate_table_sql(intent.table))])

    def _copy_table(self, handle: ConnectionHandle, intent: CopyTable) -> DDLResult:
        dialect = handle.dialect
        current = handle.current_database
        source_db = intent.source_database or current
        target_db = intent.target_database or current

        if source_db != target_db and not dialect.supports_cross_database_copy:
            raise UnsupportedOperationError("Cross-database table copy", dialect.name)

        if dialect.supports_cross_database_copy:
            source_db, target_db = intent.source_database, intent.target_database
        else:
            if source_db and source_db != current:
                handle.use_database(source_db)
            source_db = target_db = None

        try:
            structure_sql = dialect.copy_structure_sql(
                handle, intent.source, intent.target, source_db, target_db
            )
        except ExecutionError as e:
            raise ExecutionError(str(e), sql=e.sql, step="copy structure") from e

        steps = [("copy structure", structure_sql)]
        if intent.copy_data:
            steps.append(("copy data", dialect.copy_data_sql(intent.source, intent.target, source_db, target_db)))

        result = self._run(handle, intent, steps)
        self.introspector.invalidate(handle, intent.target)
        return result

    def _move_table(self, handle: ConnectionHandle, intent: MoveTable) -> DDLResult:
        dialect = handle.dialect
        if not dialect.supports_move:
            raise UnsupportedOperationError(intent.operation, dialect.name)

        if intent.source_database == intent.target_database:
            steps = [(
                "rename table",
                dialect.rename_table_sql(intent.source_table, intent.target_table, intent.source_database)
            )]
        else:
            steps = [
                ("copy structure", dialect.copy_structure_sql(
                    handle, intent.source_table, intent.target_table,
                    intent.source_database, intent.target_database
                )),
                ("copy data", dialect.copy_data_sql(
                    intent.source_table, intent.target_table,
                    intent.source_database, intent.target_database
                )),
                ("drop source", dialect.drop_table_sql(intent.source_table, intent.source_database)),
            ]

        result = self._run(handle, intent, steps)
        self.introspector.invalidate(handle, intent.source_table)
        self.introspector.invalidate(handle, intent.target_table)
        return result

    # ==================== Execution ====================

    def _run(self, handle: ConnectionHandle, intent: DDLIntent, steps: List[Step]) -> DDLResult:
        """
        Execute steps in order, each committing on its own.

        Raises:
            ExecutionError: With ``step`` set to the failing step and
                ``completed_steps`` listing the StepReports that committed
        """
        completed: List[StepReport] = []
        for step, sql in steps:
            logger.debug(f"{intent.operation} [{step}]: {sql}")
            try:
                handle.execute(sql)
            except ExecutionError as e:
                if completed:
                    done = ", ".join(report.step for report in completed)
                    logger.error(f"{intent.operation} failed at step '{step}' after: {done}")
                else:
                    logger.error(f"{intent.operation} failed at step '{step}'")
                raise ExecutionError(str(e), sql=sql, step=step, completed_steps=completed) from e
            completed.append(StepReport(step=step, sql=sql))

        logger.info(f"{intent.operation} completed on {handle.dialect.name}")
        return DDLResult(
            operation=intent.operation,
            statements=[report.sql for report in completed],
            details=completed,
        )
