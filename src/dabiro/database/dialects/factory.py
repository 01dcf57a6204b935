"""
Dialect Factory - Map a descriptor's database type to its adapter

Names are resolved through the dialect aliases in constants, so "mariadb"
yields the MySQL adapter and "pgsql" the PostgreSQL one.
"""

from typing import Dict, List, Optional, Type

from .base import DatabaseDialect
from .mysql_dialect import MySQLDialect
from .postgresql_dialect import PostgreSQLDialect
from .sqlite_dialect import SQLiteDialect
from ...constants import MYSQL, POSTGRES, SQLITE, normalize_dialect

import logging
logger = logging.getLogger(__name__)


class DialectFactory:
    """
    Registry of dialect adapters keyed by canonical dialect name.

    Usage:
        dialect = DialectFactory.create("mariadb")
        sql = dialect.truncate_table_sql("logs")
    """

    _registry: Dict[str, Type[DatabaseDialect]] = {
        MYSQL: MySQLDialect,
        POSTGRES: PostgreSQLDialect,
        SQLITE: SQLiteDialect,
    }

    @classmethod
    def create(cls, db_type: str) -> Optional[DatabaseDialect]:
        """
        Instantiate the adapter for ``db_type``.

        Returns:
            A fresh DatabaseDialect, or None when nothing is registered
            under that name or alias
        """
        adapter = cls._registry.get(cls._canonical(db_type))
        if adapter is None:
            logger.warning(f"Unsupported database type requested: {db_type}")
            return None
        return adapter()

    @classmethod
    def is_supported(cls, db_type: str) -> bool:
        return cls._canonical(db_type) in cls._registry

    @classmethod
    def supported_types(cls) -> List[str]:
        return sorted(cls._registry)

    @classmethod
    def register(cls, db_type: str, adapter: Type[DatabaseDialect]) -> None:
        """Add or replace the adapter used for ``db_type``."""
        key = cls._canonical(db_type)
        cls._registry[key] = adapter
        logger.debug(f"Dialect {adapter.__name__} registered as {key}")

    @staticmethod
    def _canonical(db_type: str) -> str:
        return normalize_dialect(db_type) or (db_type or "").strip().lower()
