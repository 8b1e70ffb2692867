"""Wildcard search over table and column names.

Patterns use the engine's ``LIKE`` syntax: ``%`` matches any run of
characters and ``_`` matches exactly one. There is no escape syntax, so a
literal ``%`` or ``_`` cannot be searched for.
"""

import re

import aiosqlite
from sqlcipher3 import dbapi2 as sqlcipher

from cipherdb.errors import InvalidArguments, QueryFailed
from cipherdb.models import ColumnMatch, TableDescriptor
from cipherdb.rows import fetch_all
from cipherdb.SchemaInspector import SchemaInspector


def like_to_regex(pattern: str) -> re.Pattern:
    """Translate a ``LIKE`` pattern into an anchored, case-insensitive regex."""
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _require_pattern(pattern: object) -> str:
    if not isinstance(pattern, str) or not pattern:
        raise InvalidArguments("Search pattern must be a non-empty string")
    return pattern


class SchemaSearch:
    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._connection = connection
        self._inspector = SchemaInspector(connection)

    async def search_tables(self, pattern: object) -> list[TableDescriptor]:
        """Return tables and views whose name matches ``pattern``."""
        pattern = _require_pattern(pattern)
        try:
            rows = await fetch_all(
                self._connection,
                "SELECT name, type, sql FROM sqlite_master "
                "WHERE type IN ('table', 'view') "
                "AND name NOT LIKE 'sqlite_%' AND name LIKE ? "
                "ORDER BY name",
                [pattern],
            )
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to search tables: {e}") from e
        return [TableDescriptor(name=r["name"], kind=r["type"], sql=r["sql"]) for r in rows]

    async def search_columns(self, pattern: object) -> list[ColumnMatch]:
        """Return every column, across all tables, whose name matches ``pattern``.

        Matches are grouped by table in table-name order; a table whose
        column lookup fails contributes nothing.
        """
        matcher = like_to_regex(_require_pattern(pattern))
        tables = await self._inspector.list_tables()
        columns_by_table = await self._inspector.columns_by_table(tables)

        return [
            ColumnMatch(
                table=table.name,
                column=column.name,
                type=column.type,
                is_primary_key=column.primary_key,
                is_nullable=column.nullable,
            )
            for table, columns in zip(tables, columns_by_table)
            for column in columns
            if matcher.fullmatch(column.name)
        ]
