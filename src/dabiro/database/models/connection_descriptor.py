"""
ConnectionDescriptor model - What is needed to open a database session
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ...constants import DEFAULT_PORTS, SQLITE, normalize_dialect
from ...exceptions import ValidationError


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    Immutable connection parameters for one administrative session.

    For SQLite ``host`` is the database file path and ``database`` is
    ignored. The password is kept out of ``repr`` so descriptors can be
    logged safely.
    """
    dialect: str
    host: str
    user: str = ""
    password: str = field(default="", repr=False)
    database: Optional[str] = None
    port: Optional[int] = None

    def __post_init__(self):
        canonical = normalize_dialect(self.dialect)
        if not canonical:
            raise ValidationError(f"Unsupported database type: {self.dialect}")
        object.__setattr__(self, "dialect", canonical)

        if not self.host:
            what = "path" if canonical == SQLITE else "host"
            raise ValidationError(f"A database {what} is required")

        if self.database == "":
            object.__setattr__(self, "database", None)

    @property
    def path(self) -> str:
        """Filesystem path of a SQLite database."""
        return self.host

    def server_address(self) -> Tuple[str, int]:
        """
        Resolve (host, port) for network dialects.

        Accepts a "host:port" form in ``host`` when no explicit port is set.
        """
        host, port = self.host, self.port
        if port is None and ":" in host:
            host, _, port_text = host.rpartition(":")
            try:
                port = int(port_text)
            except ValueError:
                raise ValidationError(f"Invalid port in host: {self.host}")
        return host, port or DEFAULT_PORTS.get(self.dialect, 0)

    def with_database(self, database: Optional[str]) -> "ConnectionDescriptor":
        """Return a copy targeting another database."""
        return ConnectionDescriptor(
            dialect=self.dialect,
            host=self.host,
            user=self.user,
            password=self.password,
            database=database,
            port=self.port,
        )
