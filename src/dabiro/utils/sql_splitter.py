"""
SQL Splitter - Break an ad-hoc SQL batch into statements.

sqlparse does the splitting, so semicolons inside string literals and
comments do not end a statement. Fragments holding only comments are
dropped.
"""

from dataclasses import dataclass
from typing import List

import sqlparse

import logging
logger = logging.getLogger(__name__)


@dataclass
class SQLStatement:
    """One statement of a batch and where it sits in the source text."""
    text: str
    line_start: int     # 1-based
    line_end: int
    is_select: bool


def split_sql_statements(sql_text: str) -> List[SQLStatement]:
    """
    Split a batch into statements with their source line ranges.

    Args:
        sql_text: Batch text, possibly with comments and blank lines

    Returns:
        List of SQLStatement objects, comment-only fragments excluded
    """
    if not sql_text or not sql_text.strip():
        return []

    statements = []
    current_line = 1
    remaining = sql_text

    for stmt_text in sqlparse.split(sql_text):
        stripped = stmt_text.strip()
        if not stripped:
            continue

        # Locate the statement to keep line numbers right across blank lines
        position = remaining.find(stripped)
        if position >= 0:
            current_line += remaining[:position].count("\n")
            remaining = remaining[position + len(stripped):]

        stmt_lines = stripped.count("\n") + 1
        line_start = current_line
        current_line += stmt_lines - 1

        if not sqlparse.format(stripped, strip_comments=True).strip():
            continue

        statements.append(SQLStatement(
            text=stripped,
            line_start=line_start,
            line_end=line_start + stmt_lines - 1,
            is_select=is_select_statement(stripped)
        ))

    logger.debug(f"Split SQL text into {len(statements)} statement(s)")
    return statements


def is_select_statement(stmt_text: str) -> bool:
    """
    True when the statement's leading keyword is one that yields rows
    (SELECT, WITH, SHOW, DESCRIBE/DESC, EXPLAIN, PRAGMA, VALUES, TABLE).
    """
    cleaned = sqlparse.format(stmt_text, strip_comments=True).strip().upper()
    if not cleaned:
        return False

    words = cleaned.lstrip("(").split()
    first_word = words[0] if words else ""

    row_keywords = {
        'SELECT', 'WITH', 'SHOW', 'DESCRIBE', 'DESC', 'EXPLAIN', 'PRAGMA', 'VALUES', 'TABLE'
    }
    return first_word in row_keywords
