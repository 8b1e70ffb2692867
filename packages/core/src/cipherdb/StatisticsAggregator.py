"""Per-table and per-column statistics.

Every aggregate is exact: full-table ``COUNT``/``MIN``/``MAX``/``AVG``
functions, never sampling. Column probes fan out over the one connection;
a probe that fails leaves its part of the column's statistics at the zero
defaults instead of failing the whole call.
"""

from collections.abc import Sequence

import aiosqlite
from sqlcipher3 import dbapi2 as sqlcipher

from cipherdb.errors import ColumnNotFound, QueryFailed
from cipherdb.fanout import fan_out, probe
from cipherdb.identifiers import quote_catalog_identifier, quote_identifier
from cipherdb.models import (
    ColumnDescriptor,
    ColumnStatistics,
    SampleResult,
    TableStatistics,
)
from cipherdb.rows import fetch_one, fetch_rows
from cipherdb.SchemaInspector import SchemaInspector

# Substrings of a declared type that mark it as numeric. The check is purely
# lexical: the engine is dynamically typed, so "INTEGER" data in a column
# declared as TEXT gets no numeric statistics.
NUMERIC_TYPE_MARKERS = ("INT", "REAL", "NUMERIC", "FLOAT", "DOUBLE")

SAMPLE_VALUE_LIMIT = 5

_COUNTS_DEFAULT = {"distinct_count": 0, "null_count": 0, "non_null_count": 0}
_EXTREMA_DEFAULT = {"min_value": None, "max_value": None, "avg_value": None}


def is_numeric_type(declared_type: str | None) -> bool:
    """Return True if ``declared_type`` names a numeric family."""
    if not declared_type:
        return False
    upper = declared_type.upper()
    return any(marker in upper for marker in NUMERIC_TYPE_MARKERS)


class StatisticsAggregator:
    """Computes statistics and samples for one connection."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._connection = connection
        self._inspector = SchemaInspector(connection)

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    async def _counts(self, table_sql: str, column_sql: str) -> dict:
        row = await fetch_one(
            self._connection,
            f"SELECT COUNT(DISTINCT {column_sql}) AS distinct_count, "
            f"COUNT(*) - COUNT({column_sql}) AS null_count, "
            f"COUNT({column_sql}) AS non_null_count "
            f"FROM {table_sql}",
        )
        return {key: (row or {}).get(key) or 0 for key in _COUNTS_DEFAULT}

    async def _extrema(self, table_sql: str, column_sql: str) -> dict:
        row = await fetch_one(
            self._connection,
            f"SELECT MIN({column_sql}) AS min_value, "
            f"MAX({column_sql}) AS max_value, "
            f"AVG({column_sql}) AS avg_value "
            f"FROM {table_sql}",
        )
        return row or dict(_EXTREMA_DEFAULT)

    async def _samples(self, table_sql: str, column_sql: str) -> list:
        _, rows = await fetch_rows(
            self._connection,
            f"SELECT DISTINCT {column_sql} AS value FROM {table_sql} "
            f"WHERE {column_sql} IS NOT NULL LIMIT {SAMPLE_VALUE_LIMIT}",
        )
        return [row["value"] for row in rows]

    async def _profile(
        self,
        table: str,
        column: ColumnDescriptor,
        table_sql: str,
        column_sql: str,
        with_samples: bool,
    ) -> ColumnStatistics:
        numeric = is_numeric_type(column.type)
        context = {"table": table, "column": column.name}

        units = [
            probe(
                self._counts(table_sql, column_sql),
                dict(_COUNTS_DEFAULT),
                probe_kind="counts",
                **context,
            )
        ]
        if numeric:
            units.append(
                probe(
                    self._extrema(table_sql, column_sql),
                    dict(_EXTREMA_DEFAULT),
                    probe_kind="extrema",
                    **context,
                )
            )
        if with_samples:
            units.append(
                probe(
                    self._samples(table_sql, column_sql),
                    [],
                    probe_kind="samples",
                    **context,
                )
            )

        counts, *rest = await fan_out(units)
        extrema = rest.pop(0) if numeric else _EXTREMA_DEFAULT
        samples = rest.pop(0) if with_samples else []

        return ColumnStatistics(
            table=table,
            column=column.name,
            type=column.type,
            distinct_count=counts["distinct_count"],
            null_count=counts["null_count"],
            non_null_count=counts["non_null_count"],
            numeric=numeric,
            min_value=extrema["min_value"],
            max_value=extrema["max_value"],
            avg_value=extrema["avg_value"],
            sample_values=samples,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def table_statistics(
        self, table_name: object, max_sample_size: int = 10000
    ) -> TableStatistics:
        """Profile every column of a table.

        Args:
            table_name: Caller-supplied table name.
            max_sample_size: Upper bound reserved for sampling-based
                estimation on large tables. Statistics are currently exact.

        Returns:
            Statistics for every column in declaration order. A table with
            no rows returns ``columns == []`` without probing any column.
        """
        table = await self._inspector.require_table(table_name)
        columns = await self._inspector.get_schema(table.name)
        table_sql = quote_catalog_identifier(table.name)

        try:
            total_rows = await self._inspector.count_rows(table.name)
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to count rows: {e}") from e

        if total_rows == 0:
            return TableStatistics(table=table.name, column_count=len(columns))

        profiles = await fan_out(
            self._profile(
                table.name,
                column,
                table_sql,
                quote_catalog_identifier(column.name),
                with_samples=False,
            )
            for column in columns
        )
        return TableStatistics(
            table=table.name,
            total_rows=total_rows,
            column_count=len(columns),
            columns=profiles,
        )

    async def column_statistics(
        self,
        table_name: object,
        column_names: Sequence[str],
        max_sample_size: int = 10000,
    ) -> list[ColumnStatistics]:
        """Profile the requested columns, in the order they were requested.

        Raises:
            ColumnNotFound: Listing every requested name missing from the
                table. Raised before any column is probed.
        """
        table = await self._inspector.require_table(table_name)
        schema = {c.name: c for c in await self._inspector.get_schema(table.name)}

        missing = [name for name in column_names if name not in schema]
        if missing:
            raise ColumnNotFound(
                f"Columns not found in table {table.name}: {', '.join(map(str, missing))}",
                columns=missing,
            )

        table_sql = quote_catalog_identifier(table.name)
        return await fan_out(
            self._profile(
                table.name,
                schema[name],
                table_sql,
                quote_identifier(name),
                with_samples=True,
            )
            for name in column_names
        )

    async def sample_rows(
        self,
        table_name: object,
        limit: int = 10,
        offset: int = 0,
        columns: Sequence[str] | None = None,
    ) -> SampleResult:
        """Return one page of rows, optionally projected onto ``columns``."""
        table = await self._inspector.require_table(table_name)

        projection = "*"
        if columns:
            known = {c.name for c in await self._inspector.get_schema(table.name)}
            missing = [name for name in columns if name not in known]
            if missing:
                raise ColumnNotFound(
                    f"Columns not found in table {table.name}: {', '.join(map(str, missing))}",
                    columns=missing,
                )
            projection = ", ".join(quote_identifier(name) for name in columns)

        try:
            names, rows = await fetch_rows(
                self._connection,
                f"SELECT {projection} FROM {quote_catalog_identifier(table.name)} "
                "LIMIT ? OFFSET ?",
                [limit, offset],
            )
        except sqlcipher.Error as e:
            raise QueryFailed(f"Failed to sample table data: {e}") from e

        return SampleResult(
            columns=names, rows=rows, table=table.name, limit=limit, offset=offset
        )
