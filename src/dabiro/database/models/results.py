"""
Result models - Plain structured data returned to callers
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class QueryResult:
    """Rows (as column -> value mappings) produced by one statement."""
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    rowcount: int = -1

    @property
    def has_result_set(self) -> bool:
        return bool(self.columns)

    def first(self) -> Dict[str, Any]:
        """First row, or an empty mapping."""
        return self.rows[0] if self.rows else {}


@dataclass
class StatementResult:
    """Outcome of one statement of an ad-hoc SQL batch."""
    sql: str
    is_select: bool
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    affected_rows: int = -1
    elapsed_ms: float = 0.0


@dataclass
class BulkResult:
    """
    Outcome of a best-effort batch.

    Items that succeeded are counted; each failed target maps to the
    error message it produced. Nothing is rolled back.
    """
    action: str
    succeeded_count: int = 0
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        parts = []
        if self.succeeded_count:
            parts.append(
                f"{self.action.capitalize()} completed successfully on "
                f"{self.succeeded_count} item(s)"
            )
        if self.failures:
            details = "; ".join(f"{name}: {msg}" for name, msg in self.failures.items())
            parts.append(f"Errors occurred: {details}")
        return "\n".join(parts)


@dataclass
class SearchHit:
    """Rows of one table matching a global search."""
    table: str
    columns: List[str]
    rows: List[Dict[str, Any]]

    @property
    def count(self) -> int:
        return len(self.rows)


@dataclass
class ExportResult:
    """A rendered export ready for delivery."""
    content: bytes
    filename: str
    mime_type: str
    row_count: int = 0


@dataclass
class StepReport:
    """One committed sub-statement of a multi-statement operation."""
    step: str
    sql: str
