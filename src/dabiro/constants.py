"""
Centralized constants for Dabiro.

Eliminates magic numbers scattered across the codebase.
Import from here instead of hardcoding values.
"""

# ===========================================================================
# Dialects
# ===========================================================================
MYSQL = "mysql"
POSTGRES = "postgres"
SQLITE = "sqlite"

SUPPORTED_DIALECTS = (MYSQL, POSTGRES, SQLITE)

# Names accepted from callers for each dialect
DIALECT_ALIASES = {
    "mysql": MYSQL,
    "mariadb": MYSQL,
    "postgres": POSTGRES,
    "postgresql": POSTGRES,
    "pgsql": POSTGRES,
    "sqlite": SQLITE,
    "sqlite3": SQLITE,
}

DEFAULT_PORTS = {
    MYSQL: 3306,
    POSTGRES: 5432,
}

# Database connected to when a Postgres descriptor names none
POSTGRES_ADMIN_DATABASE = "postgres"

# The only logical database of a SQLite file
SQLITE_MAIN_DATABASE = "main"

# Databases reported as system databases in the schema tree
SYSTEM_DATABASES = {
    MYSQL: ("information_schema", "mysql", "performance_schema", "sys"),
    POSTGRES: ("postgres",),
    SQLITE: (),
}

MYSQL_DEFAULT_ENGINE = "InnoDB"
MYSQL_CHARSET = "utf8mb4"

# ===========================================================================
# Timeouts (seconds)
# ===========================================================================
CONNECTION_TIMEOUT_S = 5        # Driver connect timeout
SESSION_TIMEOUT_S = 3600        # Idle time before a session expires

# ===========================================================================
# Query / Data limits
# ===========================================================================
DEFAULT_PAGE_SIZE = 50
PAGE_SIZES = (10, 25, 50, 100, 500, 1000)
GLOBAL_SEARCH_ROW_LIMIT = 100   # Rows returned per table by global search

# Record keys carrying the previous row image in an update
ORIGINAL_VALUE_PREFIX = "old_"

# Declared column types searched by global search
TEXT_TYPE_PATTERN = r"char|text|enum|set"

# ===========================================================================
# Schema cache
# ===========================================================================
SCHEMA_CACHE_TTL_S = 60
SCHEMA_CACHE_MAXSIZE = 256

# ===========================================================================
# Export
# ===========================================================================
EXPORT_FORMATS = ("sql", "csv", "json", "xml")

EXPORT_MIME_TYPES = {
    "sql": "text/plain",
    "csv": "text/csv",
    "json": "application/json",
    "xml": "application/xml",
}

EXPORT_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
EXPORT_HEADER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

EXPORT_EXTENSIONS = {
    "sql": ".sql",
    "csv": ".csv",
    "json": ".json",
    "xml": ".xml",
}

UNKNOWN_STAT = "N/A"

# ===========================================================================
# SQL identifier quoting
# ===========================================================================

# Quote character per dialect (same character opens and closes)
QUOTE_CHARS = {
    MYSQL: "`",
    POSTGRES: '"',
    SQLITE: "`",
}


def normalize_dialect(name: str) -> str:
    """
    Map a caller-supplied dialect name to its canonical key.

    Args:
        name: Dialect name or alias (e.g. "mariadb", "pgsql")

    Returns:
        Canonical dialect key, or an empty string if unknown
    """
    return DIALECT_ALIASES.get((name or "").strip().lower(), "")
