"""
Pytest configuration and fixtures for Dabiro tests.
"""
import sqlite3

import pytest

from dabiro.database.connection import ConnectionHandle
from dabiro.database.dialects import MySQLDialect, PostgreSQLDialect, SQLiteDialect
from dabiro.database.introspector import SchemaIntrospector
from dabiro.database.models import ConnectionDescriptor


SAMPLE_SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email VARCHAR(100),
    note TEXT
);
CREATE TABLE logs (
    id INTEGER PRIMARY KEY,
    level INTEGER,
    created REAL
);
INSERT INTO users (id, name, email, note) VALUES
    (1, 'alice', 'alice@example.com', NULL),
    (2, 'bob', 'bob@example.com', 'O''Brien'),
    (3, 'carol', NULL, 'likes alice');
INSERT INTO logs (id, level, created) VALUES (1, 10, 1.5), (2, 20, 2.5);
"""


class ScriptedConnection:
    """
    Driver connection double for server dialects.

    Records every statement and answers from ``responses``: the first key
    found in the SQL text decides the answer, either a (columns, rows)
    tuple or an exception instance to raise.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.executed = []
        self.closed = False

    @property
    def statements(self):
        return [sql for sql, _ in self.executed]

    def cursor(self):
        return ScriptedCursor(self)

    def close(self):
        self.closed = True


class ScriptedCursor:
    def __init__(self, connection):
        self.connection = connection
        self.description = None
        self.rowcount = -1
        self._rows = []

    def execute(self, sql, params=None):
        self.connection.executed.append((sql, params))
        for key, response in self.connection.responses.items():
            if key in sql:
                if isinstance(response, Exception):
                    raise response
                columns, rows = response
                self.description = [(column,) for column in columns]
                self._rows = [tuple(row) for row in rows]
                self.rowcount = len(self._rows)
                return
        self.description = None
        self._rows = []
        self.rowcount = 0

    def fetchall(self):
        return self._rows

    def close(self):
        pass


@pytest.fixture
def sqlite_path(tmp_path):
    """Temporary SQLite file with sample users/logs tables."""
    db_path = tmp_path / "sample.db"
    conn = sqlite3.connect(db_path)
    conn.executescript(SAMPLE_SCHEMA)
    conn.close()
    return db_path


@pytest.fixture
def descriptor(sqlite_path):
    return ConnectionDescriptor(dialect="sqlite", host=str(sqlite_path))


@pytest.fixture
def handle(descriptor):
    """Open handle on the sample SQLite database."""
    handle = ConnectionHandle.open(descriptor)
    yield handle
    handle.close()


@pytest.fixture
def introspector():
    return SchemaIntrospector()


@pytest.fixture
def mysql_conn():
    return ScriptedConnection()


@pytest.fixture
def mysql_handle(mysql_conn):
    """MySQL handle scoped to database "shop", backed by a scripted connection."""
    descriptor = ConnectionDescriptor(dialect="mysql", host="db.local", user="root", password="secret", database="shop")
    return ConnectionHandle(descriptor, MySQLDialect(), mysql_conn, "shop")


@pytest.fixture
def pg_conn():
    return ScriptedConnection()


@pytest.fixture
def pg_handle(pg_conn):
    """PostgreSQL handle on database "shop", backed by a scripted connection."""
    descriptor = ConnectionDescriptor(dialect="postgres", host="pg.local", user="admin", database="shop")
    return ConnectionHandle(descriptor, PostgreSQLDialect(), pg_conn, "shop")


@pytest.fixture
def scripted_sqlite_handle(sqlite_path):
    """SQLite handle whose connection only records statements."""
    conn = ScriptedConnection()
    descriptor = ConnectionDescriptor(dialect="sqlite", host=str(sqlite_path))
    return ConnectionHandle(descriptor, SQLiteDialect(), conn, "main"), conn
