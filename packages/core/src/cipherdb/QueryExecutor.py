"""Safe, read-only SQL query executor.

All caller-supplied queries pass through a lexical classifier that accepts
only statements starting with ``SELECT`` and rejects any statement keyword
that could change the database, before a statement reaches the driver.
The classifier is a conservative keyword filter, not a parser: a forbidden
word anywhere in the text (even inside a string literal or as a function
name such as ``replace()``) rejects the query.
"""

import re

import aiosqlite
from sqlcipher3 import dbapi2 as sqlcipher

from cipherdb.errors import (
    ColumnNotFound,
    InvalidQuery,
    QueryFailed,
    TableNotFound,
    WriteQueryRejected,
)
from cipherdb.models import QueryResult
from cipherdb.rows import fetch_all, fetch_rows

# Write/DDL keywords that must never appear in a query.
# Matched with word boundaries to avoid false positives on column names
# like ``created_at`` or ``updated_by``.
BLOCKED_KEYWORDS = [
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "REPLACE",
    "PRAGMA",
]

_BLOCKED_PATTERN = re.compile(
    r"\b(" + "|".join(BLOCKED_KEYWORDS) + r")\b",
    re.IGNORECASE,
)
_SELECT_PATTERN = re.compile(r"^SELECT\s", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def validate_select_query(query: object) -> str:
    """Classify a query and return its whitespace-normalized form.

    Raises:
        InvalidQuery: If the query is empty or not a string.
        WriteQueryRejected: If it does not start with ``SELECT`` or contains
            a blocked keyword as a whole word.
    """
    if not query or not isinstance(query, str) or not query.strip():
        raise InvalidQuery("Query must be a non-empty string")

    normalized = _WHITESPACE.sub(" ", query.strip())

    if not _SELECT_PATTERN.match(normalized):
        raise WriteQueryRejected("Only SELECT queries are allowed (read-only mode)")

    match = _BLOCKED_PATTERN.search(normalized)
    if match:
        raise WriteQueryRejected(
            f"Query contains forbidden keyword: {match.group().upper()}. "
            "Only SELECT queries are allowed."
        )
    return normalized


def translate_execution_error(error: sqlcipher.Error) -> Exception:
    """Map a driver error raised while running a query onto the taxonomy."""
    message = str(error)
    if "no such table" in message:
        return TableNotFound(f"Table not found: {message}")
    if "no such column" in message:
        return ColumnNotFound(f"Column not found: {message}")
    if "syntax error" in message:
        return QueryFailed(f"SQL syntax error: {message}")
    return QueryFailed(f"Query execution failed: {message}")


class QueryExecutor:
    """Executes classified read-only SQL queries against one connection."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._connection = connection

    async def execute_safe_query(self, query: str) -> QueryResult:
        """Validate and execute a read-only SQL query.

        Args:
            query: A SQL SELECT statement to execute.

        Returns:
            The result columns and rows.

        Raises:
            InvalidQuery, WriteQueryRejected: If the query fails validation.
            TableNotFound, ColumnNotFound, QueryFailed: If execution fails.
        """
        validate_select_query(query)
        try:
            columns, rows = await fetch_rows(self._connection, query.strip())
        except sqlcipher.Error as e:
            raise translate_execution_error(e) from e
        return QueryResult(columns=columns, rows=rows)

    async def explain_query_plan(self, query: str) -> list[dict]:
        """Return the ``EXPLAIN QUERY PLAN`` rows for a classified query."""
        validate_select_query(query)
        try:
            rows = await fetch_all(self._connection, f"EXPLAIN QUERY PLAN {query.strip()}")
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to explain query: {e}") from e
        return [
            {"id": row.get("id"), "parent": row.get("parent"), "detail": row.get("detail")}
            for row in rows
        ]
