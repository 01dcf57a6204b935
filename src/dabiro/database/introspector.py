"""
Schema Introspector - Enumerate databases, tables and columns.

Every listing here is best-effort: catalog failures (missing privileges,
unknown objects, dropped connections) are logged and degrade to empty or
unknown values instead of propagating.

Column lists are cached with a TTLCache; DDL operations invalidate the
entries of the tables they touch.
"""
import threading
from typing import List, Optional, Tuple

from cachetools import TTLCache

from .connection import ConnectionHandle
from .models import Column, DatabaseStats, SchemaNode, SchemaNodeType, TableStats
from ..constants import SCHEMA_CACHE_MAXSIZE, SCHEMA_CACHE_TTL_S, SYSTEM_DATABASES
from ..exceptions import DabiroError

import logging
logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """
    Structural metadata through each dialect's system catalog.

    Usage:
        introspector = SchemaIntrospector()
        tables = introspector.list_tables(handle, "shop")
        columns = introspector.list_columns(handle, "users")
        stats = introspector.estimate_stats(handle, "users").as_dict()
    """

    def __init__(self, cache_ttl: int = SCHEMA_CACHE_TTL_S, cache_maxsize: int = SCHEMA_CACHE_MAXSIZE):
        """
        Initialize the introspector.

        Args:
            cache_ttl: Column cache time-to-live in seconds
            cache_maxsize: Maximum number of cached column lists
        """
        self._cache = TTLCache(maxsize=cache_maxsize, ttl=cache_ttl)
        self._lock = threading.RLock()

    def _cache_key(self, handle: ConnectionHandle, table: str) -> Tuple[int, Optional[str], str]:
        return (handle.token, handle.current_database, table)

    # ==================== Listings ====================

    def list_databases(self, handle: ConnectionHandle) -> List[str]:
        """Databases visible on the server ("main" only for SQLite)."""
        try:
            return handle.dialect.list_databases(handle)
        except DabiroError as e:
            logger.warning(f"Could not list databases: {e}")
            return []

    def list_tables(self, handle: ConnectionHandle, database: Optional[str] = None) -> List[str]:
        """
        Tables of a database.

        Args:
            handle: Open connection
            database: Database to switch the handle to first; the handle's
                current database when omitted
        """
        try:
            if database and database != handle.current_database:
                handle.use_database(database)
            return handle.dialect.list_tables(handle)
        except DabiroError as e:
            logger.warning(f"Could not list tables of {database or handle.current_database}: {e}")
            return []

    def list_columns(self, handle: ConnectionHandle, table: str, use_cache: bool = True) -> List[Column]:
        """
        Columns of a table in the handle's current database.

        Args:
            handle: Open connection
            table: Table name
            use_cache: Serve from the column cache when possible

        Returns:
            Normalized Column list, empty if the table cannot be read
        """
        key = self._cache_key(handle, table)
        if use_cache:
            with self._lock:
                if key in self._cache:
                    logger.debug(f"Column cache hit for {table}")
                    return list(self._cache[key])

        try:
            columns = handle.dialect.list_columns(handle, table)
        except DabiroError as e:
            logger.warning(f"Could not list columns of {table}: {e}")
            return []

        if columns:
            with self._lock:
                self._cache[key] = columns
        return list(columns)

    def column_names(self, handle: ConnectionHandle, table: str, use_cache: bool = True) -> List[str]:
        return [column.name for column in self.list_columns(handle, table, use_cache=use_cache)]

    def create_statement(self, handle: ConnectionHandle, table: str) -> Optional[str]:
        """CREATE TABLE statement of an existing table, or None."""
        try:
            return handle.dialect.create_statement(handle, table)
        except DabiroError as e:
            logger.warning(f"Could not read CREATE statement of {table}: {e}")
            return None

    # ==================== Statistics ====================

    def estimate_stats(self, handle: ConnectionHandle, table: str) -> TableStats:
        """Best-effort size, row count, collation and engine of a table."""
        try:
            stats = handle.dialect.table_stats(handle, table)
        except DabiroError as e:
            logger.warning(f"Could not read statistics of {table}: {e}")
            stats = TableStats()
        stats.column_count = len(self.list_columns(handle, table))
        return stats

    def database_stats(self, handle: ConnectionHandle, database: str) -> DatabaseStats:
        """Best-effort size, table count and collation of a database."""
        try:
            return handle.dialect.database_stats(handle, database)
        except DabiroError as e:
            logger.warning(f"Could not read statistics of database {database}: {e}")
            return DatabaseStats()

    # ==================== Schema Tree ====================

    def load_schema(self, handle: ConnectionHandle, database: Optional[str] = None) -> SchemaNode:
        """
        Build a database -> tables -> columns tree.

        Args:
            handle: Open connection
            database: Database to load; the handle's current database when omitted

        Returns:
            Root DATABASE node
        """
        tables = self.list_tables(handle, database)
        name = database or handle.current_database or ""

        root = SchemaNode(
            node_type=SchemaNodeType.DATABASE,
            name=name,
            metadata={
                "dialect": handle.dialect.name,
                "is_system": name in SYSTEM_DATABASES.get(handle.dialect.name, ()),
            }
        )

        for table in tables:
            columns = self.list_columns(handle, table)
            table_node = root.add_child(SchemaNode(
                node_type=SchemaNodeType.TABLE,
                name=table,
                display_name=f"{table} ({len(columns)})",
                metadata={"database": name, "column_count": len(columns)}
            ))
            for column in columns:
                type_display = column.type.upper() if column.type else "UNKNOWN"
                if not column.nullable:
                    type_display += " NOT NULL"
                table_node.add_child(SchemaNode(
                    node_type=SchemaNodeType.COLUMN,
                    name=column.name,
                    display_name=f"{column.name} ({type_display})",
                    metadata={"table": table, "type": column.type, "column": column}
                ))

        logger.debug(f"Loaded schema of {name}: {root.child_count()} table(s)")
        return root

    # ==================== Cache ====================

    def invalidate(self, handle: Optional[ConnectionHandle] = None, table: Optional[str] = None) -> None:
        """
        Drop cached column lists.

        Args:
            handle: Only entries of this handle; everything when omitted
            table: Only entries of this table name (any database)
        """
        with self._lock:
            if handle is None and table is None:
                self._cache.clear()
                return
            for key in list(self._cache.keys()):
                token, _, cached_table = key
                if handle is not None and token != handle.token:
                    continue
                if table is not None and cached_table != table:
                    continue
                self._cache.pop(key, None)
