"""Exceptions raised by the Dabiro core."""

from typing import Any, List, Optional, Sequence


class DabiroError(Exception):
    """Base class for all errors raised by this package."""
    pass


class DatabaseConnectionError(DabiroError):
    """
    Connecting to a database failed.

    The driver message is kept verbatim in ``str(error)``; ``info`` carries
    a translated title/message/suggestion for display.
    """

    def __init__(self, message: str, dialect: str = "", info: Any = None):
        super().__init__(message)
        self.dialect = dialect
        self.info = info


class UnsupportedOperationError(DabiroError):
    """An operation is not available on the active dialect."""

    def __init__(self, operation: str, dialect: str):
        super().__init__(f"{operation} is not supported on {dialect}")
        self.operation = operation
        self.dialect = dialect


class ExecutionError(DabiroError):
    """
    The database engine rejected a statement.

    ``str(error)`` is the engine message, unmodified. For multi-statement
    operations ``step`` names the sub-statement that failed and
    ``completed_steps`` lists what already ran (and committed).
    """

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        step: Optional[str] = None,
        completed_steps: Sequence[Any] = ()
    ):
        super().__init__(message)
        self.sql = sql
        self.step = step
        self.completed_steps: List[Any] = list(completed_steps)


class ValidationError(DabiroError):
    """Caller input is missing required fields or is malformed."""
    pass


class SessionExpiredError(DabiroError):
    """The administrative session was idle for longer than its timeout."""
    pass
