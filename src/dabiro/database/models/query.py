"""
Query models - Browse requests and paginated results
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ...constants import DEFAULT_PAGE_SIZE
from ...exceptions import ValidationError


class FilterOperator(Enum):
    """Operators a filter predicate may use."""
    CONTAINS = "contains"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX = "regex"

    @classmethod
    def parse(cls, value: Any) -> "FilterOperator":
        """
        Parse an operator from request input.

        Accepts the enum values as well as the short forms used by browse
        forms ("like", "=", "!=", "like_start", "like_end", "regexp").
        Anything unrecognized falls back to CONTAINS.
        """
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        return _OPERATOR_ALIASES.get(key, cls.CONTAINS)


_OPERATOR_ALIASES = {op.value: op for op in FilterOperator}
_OPERATOR_ALIASES.update({
    "like": FilterOperator.CONTAINS,
    "=": FilterOperator.EQUALS,
    "!=": FilterOperator.NOT_EQUALS,
    "<>": FilterOperator.NOT_EQUALS,
    "like_start": FilterOperator.STARTS_WITH,
    "like_end": FilterOperator.ENDS_WITH,
    "regexp": FilterOperator.REGEX,
})


@dataclass(frozen=True)
class FilterPredicate:
    """One column/operator/value condition."""
    column: str
    operator: FilterOperator
    value: Any

    def __post_init__(self):
        object.__setattr__(self, "operator", FilterOperator.parse(self.operator))


@dataclass
class QueryRequest:
    """
    A browse request against one table.

    ``column_filters`` maps column names to substrings (a "contains"
    filter per column); empty values are ignored. Filters or a sort on a
    column the table does not have are dropped when the query is built.
    """
    table: str
    filters: List[FilterPredicate] = field(default_factory=list)
    column_filters: Dict[str, Any] = field(default_factory=dict)
    sort_column: Optional[str] = None
    sort_direction: str = "ASC"
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        if not self.table:
            raise ValidationError("A table name is required")
        try:
            self.limit = int(self.limit)
            self.offset = int(self.offset)
        except (TypeError, ValueError):
            raise ValidationError("Limit and offset must be integers")
        if self.limit <= 0:
            raise ValidationError(f"Limit must be positive, got {self.limit}")
        if self.offset < 0:
            raise ValidationError(f"Offset must not be negative, got {self.offset}")

        direction = str(self.sort_direction or "ASC").upper()
        self.sort_direction = direction if direction in ("ASC", "DESC") else "ASC"


@dataclass
class Page:
    """One page of rows plus the pagination summary."""
    rows: List[Dict[str, Any]]
    columns: List[str]
    total: int
    limit: int
    offset: int
    filter_active: bool = False
    sql: str = ""

    @property
    def current_page(self) -> int:
        return self.offset // self.limit + 1

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_previous(self) -> bool:
        return self.offset > 0

    @property
    def has_next(self) -> bool:
        return self.offset + self.limit < self.total
