"""
Connection Error Handler - Readable database connection error messages

Translates driver connection errors into a title, a message and a
suggestion. The driver's own text is always kept in ``original_error``.
"""

import re
from dataclasses import dataclass

from ..constants import DEFAULT_PORTS, MYSQL, POSTGRES, SQLITE, normalize_dialect

import logging
logger = logging.getLogger(__name__)


@dataclass
class ConnectionErrorInfo:
    """Readable rendering of one connection failure."""
    title: str
    message: str
    suggestion: str
    original_error: str  # driver text, verbatim

    def format_full(self) -> str:
        """Title, message and suggestion as one block."""
        parts = [self.title, "", self.message]
        if self.suggestion:
            parts.extend(["", "Suggestion:", self.suggestion])
        return "\n".join(parts)

    def format_short(self) -> str:
        """Title and message only."""
        return f"{self.title}\n\n{self.message}"


# (pattern, title, message, suggestion) per dialect; "{match}" in the
# message is replaced by the first capture group.

MYSQL_PATTERNS = [
    (
        r"access denied for user ['\"]?([^'\"@]+)['\"]?",
        "Authentication failed",
        "User '{match}' could not log in.",
        "Check the user name, the password and the host the account is allowed from."
    ),
    (
        r"unknown database ['\"]?([^'\"]+)['\"]?",
        "Unknown database",
        "Database '{match}' does not exist.",
        "Check the database name or connect without one and create it first."
    ),
    (
        r"can't connect to mysql server",
        "Server unreachable",
        "Could not reach the MySQL server.",
        "Check that:\n"
        "  - The server is running\n"
        f"  - It listens on the expected port (default: {DEFAULT_PORTS[MYSQL]})\n"
        "  - A firewall does not block the connection"
    ),
    (
        r"(?:name or service not known|nodename nor servname|getaddrinfo failed)",
        "Host not found",
        "The MySQL host name could not be resolved.",
        "Check the host name or IP address."
    ),
    (
        r"too many connections",
        "Too many connections",
        "The server refused the connection because its limit was reached.",
        "Close idle sessions or raise max_connections on the server."
    ),
]

POSTGRESQL_PATTERNS = [
    (
        r"password authentication failed for user ['\"]?(\w+)['\"]?",
        "Authentication failed",
        "Wrong password for user '{match}'.",
        "Check the password or ask the administrator to reset it."
    ),
    (
        r"database ['\"]?(\w+)['\"]? does not exist",
        "Unknown database",
        "Database '{match}' does not exist.",
        "Check the database name or create it first."
    ),
    (
        r"role ['\"]?(\w+)['\"]? does not exist",
        "Unknown user",
        "User '{match}' does not exist on the server.",
        "Check the user name or ask the administrator to create the role."
    ),
    (
        r"(?:connection refused|could not connect)",
        "Connection refused",
        "Could not connect to the PostgreSQL server.",
        "Check that:\n"
        "  - PostgreSQL is running\n"
        f"  - It listens on the expected port (default: {DEFAULT_PORTS[POSTGRES]})\n"
        "  - pg_hba.conf allows your connection"
    ),
    (
        r"(?:could not translate host name|host not found)",
        "Host not found",
        "The PostgreSQL host name could not be resolved.",
        "Check the host name or IP address."
    ),
    (
        r"(?:SSL|sslmode)",
        "SSL error",
        "The SSL negotiation failed.",
        "Check the server's SSL configuration."
    ),
]

SQLITE_PATTERNS = [
    (
        r"(?:unable to open|no such file)",
        "File not found",
        "The SQLite database file could not be opened.",
        "Check the file path and that its directory exists."
    ),
    (
        r"database is locked",
        "Database locked",
        "The database is in use by another process.",
        "Close other applications using this file, or retry in a moment."
    ),
    (
        r"(?:read-only|readonly)",
        "Read-only database",
        "The database file is read-only.",
        "Check the permissions of the file and its parent directory."
    ),
    (
        r"(?:not a database|corrupt|malformed)",
        "Corrupt database",
        "The file does not look like a valid SQLite database.",
        "Restore a backup or run 'PRAGMA integrity_check'."
    ),
]

# Tried after the dialect patterns
GENERIC_PATTERNS = [
    (
        r"(?:timeout|timed out)",
        "Connection timed out",
        "The server did not answer in time.",
        "Check the network connection and retry."
    ),
    (
        r"refused",
        "Connection refused",
        "The server refused the connection.",
        "Check that the database server is running."
    ),
    (
        r"(?:unreachable|network)",
        "Network unreachable",
        "The server is not reachable on the network.",
        "Check your network connection and VPN if required."
    ),
]

_DIALECT_PATTERNS = {
    MYSQL: MYSQL_PATTERNS,
    POSTGRES: POSTGRESQL_PATTERNS,
    SQLITE: SQLITE_PATTERNS,
}


def parse_connection_error(
    error: Exception,
    db_type: str = ""
) -> ConnectionErrorInfo:
    """
    Parse a database connection error and return readable information.

    Args:
        error: Driver exception
        db_type: Database type or alias (mysql, postgres, sqlite, ...)

    Returns:
        ConnectionErrorInfo with a readable message and suggestion
    """
    original_error = str(error)

    dialect_patterns = _DIALECT_PATTERNS.get(normalize_dialect(db_type))
    if dialect_patterns is not None:
        patterns = dialect_patterns + GENERIC_PATTERNS
    else:
        # Unknown dialect: every pattern applies
        patterns = MYSQL_PATTERNS + POSTGRESQL_PATTERNS + SQLITE_PATTERNS + GENERIC_PATTERNS

    for pattern, title, message_template, suggestion in patterns:
        match = re.search(pattern, original_error, re.IGNORECASE)
        if match:
            message = message_template
            if "{match}" in message and match.groups():
                message = message.replace("{match}", match.group(1))

            return ConnectionErrorInfo(
                title=title,
                message=message,
                suggestion=suggestion,
                original_error=original_error
            )

    logger.debug(f"No connection error pattern matched: {original_error}")
    return ConnectionErrorInfo(
        title="Connection error",
        message="An error occurred while connecting to the database.",
        suggestion="Check the connection parameters and retry.",
        original_error=original_error
    )


def format_connection_error(
    error: Exception,
    db_type: str = "",
    include_original: bool = True
) -> str:
    """
    Render a connection error as display text.

    Args:
        error: Driver exception
        db_type: Database type or alias
        include_original: Append the raw driver message

    Returns:
        Display text, with the driver message appended when requested
    """
    info = parse_connection_error(error, db_type)
    parts = [info.format_full()]

    if include_original:
        parts.extend(["", "---", "Technical details:", info.original_error[:500]])

    return "\n".join(parts)
