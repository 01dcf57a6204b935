"""
Admin Session - One login's connection and the components working on it.

A session owns exactly one ConnectionHandle. It is opened at login,
closed at logout, and expires after an idle timeout.
"""
import time
from typing import Callable, Optional

from .constants import SCHEMA_CACHE_TTL_S, SESSION_TIMEOUT_S
from .database.bulk import BulkOperator, GlobalSearch
from .database.connection import ConnectionHandle
from .database.ddl import DDLOperator
from .database.introspector import SchemaIntrospector
from .database.models import ConnectionDescriptor
from .database.query_builder import QueryBuilder
from .database.sql_runner import SqlRunner
from .exceptions import SessionExpiredError
from .export import ExportSerializer

import logging
logger = logging.getLogger(__name__)


class AdminSession:
    """
    Explicit session object passed to every core operation.

    Usage:
        with AdminSession.open(descriptor) as session:
            session.touch()
            tables = session.introspector.list_tables(session.handle, "shop")
            page = session.query.fetch_page(session.handle, QueryRequest("users"))
    """

    def __init__(
        self,
        handle: ConnectionHandle,
        timeout: float = SESSION_TIMEOUT_S,
        cache_ttl: int = SCHEMA_CACHE_TTL_S,
        clock: Callable[[], float] = time.monotonic
    ):
        self.handle = handle
        self.timeout = timeout
        self._clock = clock
        self.last_activity = clock()

        self.introspector = SchemaIntrospector(cache_ttl=cache_ttl)
        self.query = QueryBuilder(self.introspector)
        self.ddl = DDLOperator(self.introspector)
        self.bulk = BulkOperator(self.ddl)
        self.search = GlobalSearch(self.introspector)
        self.runner = SqlRunner(self.introspector)
        self.exporter = ExportSerializer(self.introspector)

    @classmethod
    def open(cls, descriptor: ConnectionDescriptor, **kwargs) -> "AdminSession":
        """
        Log in: connect and build a session around the new handle.

        Raises:
            DatabaseConnectionError: The connection failed
        """
        handle = ConnectionHandle.open(descriptor)
        logger.info(f"Session opened for {descriptor.user or 'anonymous'} on {descriptor.dialect}")
        return cls(handle, **kwargs)

    @property
    def descriptor(self) -> ConnectionDescriptor:
        return self.handle.descriptor

    @property
    def closed(self) -> bool:
        return self.handle.closed

    def is_expired(self) -> bool:
        return self._clock() - self.last_activity > self.timeout

    def touch(self) -> None:
        """
        Record activity.

        Raises:
            SessionExpiredError: The session was idle too long; it is closed
        """
        if self.closed:
            raise SessionExpiredError("Session is closed")
        if self.is_expired():
            logger.info("Session expired after inactivity")
            self.close()
            raise SessionExpiredError("Session expired after inactivity")
        self.last_activity = self._clock()

    def use_database(self, database: str) -> None:
        self.touch()
        self.handle.use_database(database)

    def close(self) -> None:
        """Log out. Safe to call more than once."""
        if not self.handle.closed:
            self.handle.close()
            self.introspector.invalidate()
            logger.info("Session closed")

    def __enter__(self) -> "AdminSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
