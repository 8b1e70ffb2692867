"""Small helpers for running a statement and collecting mapping rows."""

from collections.abc import Sequence
from typing import Any

import aiosqlite


async def fetch_rows(
    connection: aiosqlite.Connection,
    sql: str,
    parameters: Sequence[Any] = (),
) -> tuple[list[str], list[dict[str, Any]]]:
    """Run ``sql`` and return ``(column_names, rows)``.

    Column names come from the cursor description, so they are known even
    when the statement returns no rows.
    """
    async with connection.execute(sql, parameters) as cursor:
        records = await cursor.fetchall()
        columns = [d[0] for d in cursor.description or ()]
    return columns, [dict(zip(columns, record)) for record in records]


async def fetch_all(
    connection: aiosqlite.Connection,
    sql: str,
    parameters: Sequence[Any] = (),
) -> list[dict[str, Any]]:
    _, rows = await fetch_rows(connection, sql, parameters)
    return rows


async def fetch_one(
    connection: aiosqlite.Connection,
    sql: str,
    parameters: Sequence[Any] = (),
) -> dict[str, Any] | None:
    rows = await fetch_all(connection, sql, parameters)
    return rows[0] if rows else None


async def fetch_value(
    connection: aiosqlite.Connection,
    sql: str,
    parameters: Sequence[Any] = (),
) -> Any:
    """Return the first column of the first row, or ``None``."""
    async with connection.execute(sql, parameters) as cursor:
        record = await cursor.fetchone()
    return record[0] if record else None
